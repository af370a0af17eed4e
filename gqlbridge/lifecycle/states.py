"""
Lifecycle State Definitions

Provides:
- Lifecycle states
- Allowed transition table
"""

from enum import Enum
from typing import Dict, FrozenSet


class LifecycleState(Enum):
    """Server lifecycle states"""
    CREATED = "created"
    STARTED = "started"
    ATTACHED = "attached"
    DRAINING = "draining"
    STOPPED = "stopped"


ALLOWED_TRANSITIONS: Dict[LifecycleState, FrozenSet[LifecycleState]] = {
    LifecycleState.CREATED: frozenset({LifecycleState.STARTED}),
    LifecycleState.STARTED: frozenset({LifecycleState.ATTACHED, LifecycleState.DRAINING}),
    # Re-entered when further adapters attach
    LifecycleState.ATTACHED: frozenset({LifecycleState.ATTACHED, LifecycleState.DRAINING}),
    LifecycleState.DRAINING: frozenset({LifecycleState.STOPPED}),
    LifecycleState.STOPPED: frozenset(),
}


def can_transition(source: LifecycleState, target: LifecycleState) -> bool:
    return target in ALLOWED_TRANSITIONS[source]


def is_serving(state: LifecycleState) -> bool:
    """States in which adapters accept new requests"""
    return state in (LifecycleState.STARTED, LifecycleState.ATTACHED)
