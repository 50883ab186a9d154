"""Match domain services: versioned state, event log and lifecycle.

This package contains the concurrency-sensitive core that HTTP routes and
socket handlers call into, keeping transport concerns separated from the
state store, event log and lifecycle rules.
"""

from .outcomes import (
    Applied,
    Conflict,
    Forbidden,
    NotFound,
    StatusConflict,
    Success,
    VersionConflict,
)
from .state_store import MatchStateStore
from .event_log import EventLog
from .guard import LifecycleGuard
from .orchestrator import MatchOrchestrator
