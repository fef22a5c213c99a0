class RenewalError(Exception):
    pass


class RenewalCycleNotFoundError(RenewalError):
    pass


class RenewalCycleClosedError(RenewalError):
    pass


class RenewalNotAllowedError(RenewalError):
    """User holds no shares in the cycle's horse."""


class RenewalQuantityExceededError(RenewalError):
    def __init__(self, *, renew_cycle_id: int, requested: int, allowed: int) -> None:
        super().__init__(f"cycle {renew_cycle_id}: requested {requested}, allowed {allowed}")
        self.renew_cycle_id = renew_cycle_id
        self.requested = requested
        self.allowed = allowed
