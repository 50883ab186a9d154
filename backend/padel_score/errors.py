"""Exceptions raised by the match stores.

Expected request outcomes (not found, forbidden, conflicts) are returned as
values from ``padel_score.services.matches.outcomes``; the classes below are
for situations the caller cannot resolve by retrying or reconciling.
"""


class ScoreServiceError(Exception):
    """Base class for storage level failures."""
    pass


class AlreadyExists(ScoreServiceError):
    """A state row already exists for the match."""
    def __init__(self, match_id):
        self.match_id = match_id
        super().__init__(f"State for match {match_id} already exists")


class InvariantViolation(ScoreServiceError):
    """Persisted data breaks a structural guarantee (e.g. a match without state)."""
    pass


class StoreUnavailable(ScoreServiceError):
    """The database could not be reached or refused the operation."""
    pass
