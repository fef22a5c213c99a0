class BallotError(Exception):
    pass


class BallotNotFoundError(BallotError):
    pass


class BallotValidationError(BallotError):
    pass


class BallotClosedError(BallotError):
    pass


class BallotNotEligibleError(BallotError):
    pass


class AlreadyEnteredError(BallotError):
    pass


class BallotAlreadyDrawnError(BallotError):
    pass


class BallotStillOpenError(BallotError):
    pass


class BallotStatusTransitionError(BallotError):
    pass
