class PromotionError(Exception):
    pass


class PromotionNotFoundError(PromotionError):
    pass


class PromotionNotExportableError(PromotionError):
    """Quota and minimum shares must both be positive."""
