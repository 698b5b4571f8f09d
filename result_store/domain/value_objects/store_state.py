"""StoreState enum - result store lifecycle

UNINITIALIZED → INITIALIZING → READY → SHUTTING_DOWN → CLOSED
CLOSED → INITIALIZING is allowed (a closed store may be reopened);
SHUTTING_DOWN → INITIALIZING is not.
"""

from __future__ import annotations

from enum import Enum


class StoreState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    SHUTTING_DOWN = "shutting_down"
    CLOSED = "closed"

    def can_transition_to(self, target: StoreState) -> bool:
        allowed: dict[StoreState, set[StoreState]] = {
            StoreState.UNINITIALIZED: {StoreState.INITIALIZING},
            # a failed bootstrap falls back to CLOSED
            StoreState.INITIALIZING: {StoreState.READY, StoreState.CLOSED},
            StoreState.READY: {StoreState.SHUTTING_DOWN},
            StoreState.SHUTTING_DOWN: {StoreState.CLOSED},
            StoreState.CLOSED: {StoreState.INITIALIZING},
        }
        return target in allowed[self]
