from functools import wraps

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError

from padel_score.errors import InvariantViolation, StoreUnavailable
from padel_score.models import Match, new_id, utcnow
from .event_log import EventLog
from .guard import LifecycleGuard
from .outcomes import (
    Conflict,
    Failure,
    MatchSnapshot,
    NotFound,
    Success,
    VersionConflict,
)
from .state_store import MatchStateStore


def default_initial_state(mode, golden_point, players):
    return {
        'mode': mode,
        'goldenPoint': golden_point,
        'players': players,
        'score': {
            'teamA': {'games': 0, 'sets': 0},
            'teamB': {'games': 0, 'sets': 0},
        },
        'currentSet': 1,
        'history': [],
    }


def store_operation(func):
    """Roll back and re-raise database connectivity failures as StoreUnavailable."""
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except OperationalError as exc:
            self.session.rollback()
            current_app.logger.error(f"[store-error] op={func.__name__} error={exc.orig}")
            raise StoreUnavailable(str(exc.orig)) from exc
    return wrapper


class MatchOrchestrator:
    """Stateless coordinator over the lifecycle guard, state store and event log.

    Each public operation is one unit of work on ``session``: it either commits
    every write it made or rolls all of them back, and returns a tagged
    outcome from ``outcomes``.
    """

    def __init__(self, session):
        self.session = session
        self.guard = LifecycleGuard(session)
        self.states = MatchStateStore(session)
        self.events = EventLog(session)

    def _snapshot(self, match: Match) -> MatchSnapshot:
        state = self.states.read(match.id)
        if state is None:
            current_app.logger.error(f"[invariant] match={match.id} exists but state is missing")
            raise InvariantViolation(f"Match {match.id} exists but state is missing")
        return MatchSnapshot(
            match_id=match.id,
            status=match.status,
            version=state.version,
            state=state.state,
            won=match.won,
        )

    def _fail(self, failure: Failure) -> Failure:
        self.session.rollback()
        return failure

    @store_operation
    def create(self, owner_id: str, mode=None, golden_point=False, players=None, initial_state=None):
        existing = self.guard.find_live(owner_id)
        if existing is not None:
            current_app.logger.info(f"[match-create] owner={owner_id} already has LIVE match={existing.id}")
            snapshot = self._snapshot(existing)
            self.session.rollback()
            return Success(snapshot, created=False)

        if initial_state is None:
            initial_state = default_initial_state(mode, golden_point, players)

        now = utcnow()
        match = Match(
            id=new_id(),
            owner_id=owner_id,
            status='LIVE',
            played_at=now,
            created_at=now,
            updated_at=now,
        )
        try:
            self.session.add(match)
            self.session.flush()
            self.states.create(match.id, initial_state)
            self.events.append(match.id, 'START', {
                'mode': mode,
                'goldenPoint': golden_point,
                'players': players,
            })
            self.session.commit()
        except IntegrityError:
            # Lost a concurrent create against the one-LIVE-match-per-owner index
            self.session.rollback()
            existing = self.guard.find_live(owner_id)
            if existing is None:
                raise
            current_app.logger.info(f"[match-create] owner={owner_id} raced, returning match={existing.id}")
            snapshot = self._snapshot(existing)
            self.session.rollback()
            return Success(snapshot, created=False)

        current_app.logger.info(f"[match-create] match={match.id} owner={owner_id}")
        return Success(MatchSnapshot(
            match_id=match.id,
            status='LIVE',
            version=0,
            state=initial_state,
        ), created=True)

    @store_operation
    def get_active(self, owner_id: str):
        match = self.guard.find_live(owner_id)
        if match is None:
            return self._fail(NotFound(f"No active match found for user {owner_id}"))
        snapshot = self._snapshot(match)
        self.session.rollback()
        return Success(snapshot)

    def _apply(self, match_id, owner_id, expected_version, new_state, event_type=None, payload=None):
        match = self.guard.validate(match_id, owner_id, 'LIVE')
        if isinstance(match, Failure):
            return self._fail(match)
        status = match.status
        locked = self.guard.lock_live(match_id)
        if locked is not None:
            return self._fail(locked)

        # Event and state change commit or roll back together
        if event_type is not None:
            self.events.append(match_id, event_type, payload)
        outcome = self.states.compare_and_swap(match_id, expected_version, new_state)
        if isinstance(outcome, Conflict):
            current_app.logger.warning(
                f"[cas-conflict] match={match_id} expected={expected_version} current={outcome.current_version}"
            )
            return self._fail(VersionConflict(
                'Version conflict',
                current_version=outcome.current_version,
                current_state=outcome.current_state,
            ))

        self.session.commit()
        current_app.logger.info(
            f"[match-update] match={match_id} event={event_type} version={outcome.version}"
        )
        return Success(MatchSnapshot(
            match_id=match_id,
            status=status,
            version=outcome.version,
            state=outcome.state,
        ))

    @store_operation
    def register_point(self, match_id: str, owner_id: str, winner: str, expected_version: int, new_state):
        return self._apply(match_id, owner_id, expected_version, new_state, 'POINT', {'winner': winner})

    @store_operation
    def undo(self, match_id: str, owner_id: str, expected_version: int, new_state):
        return self._apply(match_id, owner_id, expected_version, new_state, 'UNDO', {})

    @store_operation
    def update_state(self, match_id: str, owner_id: str, expected_version: int, state):
        return self._apply(match_id, owner_id, expected_version, state)

    @store_operation
    def finish(self, match_id: str, owner_id: str, won: bool, expected_version=None,
               final_state=None, final_stats=None):
        match = self.guard.validate(match_id, owner_id, 'LIVE')
        if isinstance(match, Failure):
            return self._fail(match)
        locked = self.guard.lock_live(match_id)
        if locked is not None:
            return self._fail(locked)

        # Same lock order as _apply: match row before state row
        self.events.append(match_id, 'MATCH_END', {'won': won, 'finalStats': final_stats})
        if final_state is not None:
            outcome = self.states.compare_and_swap(match_id, expected_version, final_state)
            if isinstance(outcome, Conflict):
                current_app.logger.warning(
                    f"[cas-conflict] match={match_id} expected={expected_version} "
                    f"current={outcome.current_version} on finish"
                )
                return self._fail(VersionConflict(
                    'Version conflict when updating final state',
                    current_version=outcome.current_version,
                    current_state=outcome.current_state,
                ))

        self.guard.transition(match_id, 'FINISHED', won)
        self.session.commit()
        current_app.logger.info(f"[match-finish] match={match_id} won={won}")

        finished = self.guard.get(match_id)
        snapshot = self._snapshot(finished)
        self.session.rollback()
        return Success(snapshot)

    @store_operation
    def abandon_active(self, owner_id: str):
        match = self.guard.find_live(owner_id)
        if match is None:
            # Nothing LIVE counts as already abandoned
            self.session.rollback()
            return Success(None)

        match_id = match.id
        if self.guard.lock_live(match_id) is not None:
            # Finished or abandoned by a concurrent request
            self.session.rollback()
            return Success(None)
        self.events.append(match_id, 'ABANDON', {})
        self.guard.transition(match_id, 'ABANDONED')
        self.session.commit()
        current_app.logger.info(f"[match-abandon] match={match_id} owner={owner_id}")

        snapshot = self._snapshot(self.guard.get(match_id))
        self.session.rollback()
        return Success(snapshot)

    @store_operation
    def list_events(self, match_id: str, owner_id: str):
        match = self.guard.validate(match_id, owner_id, required_status=None)
        if isinstance(match, Failure):
            return self._fail(match)
        events = [event.to_dict() for event in self.events.list(match_id)]
        self.session.rollback()
        return Success(events)
