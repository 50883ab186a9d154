"""Tagged outcomes returned by the match stores and orchestrator.

Every orchestrator operation returns exactly one of ``Success``,
``NotFound``, ``Forbidden``, ``StatusConflict`` or ``VersionConflict``.
The state store's compare-and-swap returns ``Applied`` or ``Conflict``.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class MatchSnapshot:
    match_id: str
    status: str
    version: int
    state: Any
    won: Optional[bool] = None

    def to_dict(self) -> dict:
        payload = {
            'matchId': self.match_id,
            'status': self.status,
            'version': self.version,
            'state': self.state,
        }
        if self.won is not None:
            payload['won'] = self.won
        return payload


@dataclass(frozen=True)
class Applied:
    version: int
    state: Any


@dataclass(frozen=True)
class Conflict:
    current_version: int
    current_state: Any


@dataclass(frozen=True)
class Success:
    value: Any = None
    # Set by create: False when an existing LIVE match was returned
    created: bool = False
    ok = True


@dataclass(frozen=True)
class Failure:
    message: str
    ok = False


@dataclass(frozen=True)
class NotFound(Failure):
    pass


@dataclass(frozen=True)
class Forbidden(Failure):
    pass


@dataclass(frozen=True)
class StatusConflict(Failure):
    current_status: Optional[str] = None


@dataclass(frozen=True)
class VersionConflict(Failure):
    current_version: Optional[int] = None
    current_state: Any = field(default=None)

    def details(self) -> dict:
        return {
            'currentVersion': self.current_version,
            'currentState': self.current_state,
        }


@dataclass(frozen=True)
class DuplicateEmail(Failure):
    pass
