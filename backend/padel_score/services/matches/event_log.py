from sqlalchemy import select, update

from padel_score.errors import InvariantViolation
from padel_score.models import Match, MatchEvent, dump_document, utcnow


class EventLog:
    """Append-only, per-match ordered event sequence."""

    def __init__(self, session):
        self.session = session

    def append(self, match_id: str, event_type: str, payload=None) -> int:
        """Record an event and return its sequence number.

        The next number comes from an atomic increment of the match's counter
        column; the row lock taken by that UPDATE is held until the enclosing
        transaction ends, so concurrent appenders for one match are serialised
        and never share a number.
        """
        bumped = self.session.execute(
            update(Match)
            .where(Match.id == match_id)
            .values(last_event_seq=Match.last_event_seq + 1)
            .execution_options(synchronize_session=False)
        )
        if bumped.rowcount != 1:
            raise InvariantViolation(f"Cannot append event to unknown match {match_id}")
        seq = self.session.execute(
            select(Match.last_event_seq).where(Match.id == match_id)
        ).scalar_one()

        self.session.add(MatchEvent(
            match_id=match_id,
            seq=seq,
            event_type=event_type,
            payload=dump_document(payload if payload is not None else {}),
            created_at=utcnow(),
        ))
        self.session.flush()
        return seq

    def list(self, match_id: str):
        return self.session.execute(
            select(MatchEvent)
            .where(MatchEvent.match_id == match_id)
            .order_by(MatchEvent.seq)
        ).scalars().all()
