from flask import current_app
from sqlalchemy import select, update

from padel_score.models import Match, utcnow
from .outcomes import Forbidden, NotFound, StatusConflict


class LifecycleGuard:
    """Ownership and status checks in front of every match mutation."""

    def __init__(self, session):
        self.session = session

    def get(self, match_id: str):
        return self.session.get(Match, match_id, populate_existing=True)

    def find_live(self, owner_id: str):
        return self.session.execute(
            select(Match)
            .where(Match.owner_id == owner_id, Match.status == 'LIVE')
            .execution_options(populate_existing=True)
        ).scalars().first()

    def validate(self, match_id: str, owner_id: str, required_status='LIVE'):
        """Return the match if ``owner_id`` may act on it, else a failure outcome.

        - NotFound when no such match exists
        - Forbidden when the match belongs to someone else
        - StatusConflict when the match is not in ``required_status``
          (``None`` skips the status check)

        The returned Match is a point-in-time read, not a lock.
        """
        match = self.get(match_id)
        if match is None:
            current_app.logger.warning(f"[guard-not-found] match={match_id}")
            return NotFound(f"Match {match_id} not found")

        if match.owner_id != owner_id:
            current_app.logger.warning(
                f"[guard-forbidden] match={match_id} owner={match.owner_id} caller={owner_id}"
            )
            return Forbidden(f"Match {match_id} does not belong to user {owner_id}")

        if required_status is not None and match.status != required_status:
            current_app.logger.warning(
                f"[guard-status] match={match_id} status={match.status} required={required_status}"
            )
            return StatusConflict(
                f"Match status is {match.status}, expected {required_status}",
                current_status=match.status,
            )

        return match

    def transition(self, match_id: str, new_status: str, won=None) -> None:
        # Unconditional: status changes are not guarded by the state version
        self.session.execute(
            update(Match)
            .where(Match.id == match_id)
            .values(status=new_status, won=won, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        current_app.logger.info(f"[match-transition] match={match_id} status={new_status} won={won}")

    def lock_live(self, match_id: str):
        """Take the match row for this transaction, provided it is still LIVE.

        Returns None once the row is held, or StatusConflict when the match
        left LIVE after ``validate`` read it.
        """
        result = self.session.execute(
            update(Match)
            .where(Match.id == match_id, Match.status == 'LIVE')
            .values(updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return None

        current = self.get(match_id)
        status = current.status if current is not None else None
        current_app.logger.warning(f"[guard-lock] match={match_id} status={status}")
        return StatusConflict(f"Match status is {status}, expected LIVE", current_status=status)
