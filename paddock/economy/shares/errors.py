class SharesError(Exception):
    pass


class HorseNotFoundError(SharesError):
    pass


class InvalidShareQuantityError(SharesError):
    pass


class SharesUnavailableError(SharesError):
    def __init__(self, *, horse_id: int, requested: int, remaining: int) -> None:
        super().__init__(f"horse {horse_id}: requested {requested}, remaining {remaining}")
        self.horse_id = horse_id
        self.requested = requested
        self.remaining = remaining

    @property
    def sold_out(self) -> bool:
        return self.remaining <= 0
