"""Service-level errors.

Both subclass ValueError so callers that only care about "the request
was rejected" can keep catching ValueError.
"""


class NotFoundError(ValueError):
    """A referenced row does not exist."""


class AlreadyVotedError(ValueError):
    """The actor already has a vote recorded for the poll."""

    def __init__(self, message: str = "You have already voted in this poll"):
        super().__init__(message)
