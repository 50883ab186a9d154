from sqlalchemy import update

from padel_score.errors import AlreadyExists, InvariantViolation
from padel_score.models import MatchState, dump_document, utcnow
from .outcomes import Applied, Conflict


class MatchStateStore:
    """Current-state row per match, guarded by a version counter.

    The store works on the session it is given and never commits; the caller
    owns the transaction boundary.
    """

    def __init__(self, session):
        self.session = session

    def create(self, match_id: str, initial_state) -> MatchState:
        if self.session.get(MatchState, match_id) is not None:
            raise AlreadyExists(match_id)
        row = MatchState(
            match_id=match_id,
            version=0,
            state_json=dump_document(initial_state),
            updated_at=utcnow(),
        )
        self.session.add(row)
        self.session.flush()
        return row

    def read(self, match_id: str):
        # populate_existing: a CAS issued as a bulk UPDATE leaves the identity map stale
        return self.session.get(MatchState, match_id, populate_existing=True)

    def compare_and_swap(self, match_id: str, expected_version: int, new_state):
        """Replace the state iff the stored version equals ``expected_version``.

        Comparison and write are one conditional UPDATE, so there is no window
        between checking the version and writing the row. Returns ``Applied``
        with the incremented version, or ``Conflict`` with the row as it is
        now stored.
        """
        result = self.session.execute(
            update(MatchState)
            .where(
                MatchState.match_id == match_id,
                MatchState.version == expected_version,
            )
            .values(
                version=MatchState.version + 1,
                state_json=dump_document(new_state),
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return Applied(version=expected_version + 1, state=new_state)

        current = self.read(match_id)
        if current is None:
            raise InvariantViolation(f"Match {match_id} has no state row")
        return Conflict(current_version=current.version, current_state=current.state)
