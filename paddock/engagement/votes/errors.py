class VoteError(Exception):
    pass


class VoteNotFoundError(VoteError):
    pass


class VoteValidationError(VoteError):
    pass


class VoteClosedError(VoteError):
    pass


class VoteNotEligibleError(VoteError):
    pass


class VoteOptionNotFoundError(VoteError):
    pass


class AlreadyVotedError(VoteError):
    pass


class VoteResultsNotAvailableError(VoteError):
    pass
