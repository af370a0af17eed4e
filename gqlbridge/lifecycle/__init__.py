"""
Lifecycle Management

Provides:
- Lifecycle states and transition rules
- Lifecycle controller (start, attach, drain)
"""

from .states import (
    LifecycleState,
    ALLOWED_TRANSITIONS,
    can_transition,
    is_serving
)
from .controller import (
    LifecycleController,
    AttachedAdapter,
    DrainHook,
    DrainReport,
    HookOutcome
)

__all__ = [
    # States
    "LifecycleState",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    "is_serving",
    # Controller
    "LifecycleController",
    "AttachedAdapter",
    "DrainHook",
    "DrainReport",
    "HookOutcome"
]
