"""Scoped state rollback.

Guards one piece of mutable state: its contents are captured when the guard is
created and written back when the guarded scope ends, unless dismissed.
"""

from __future__ import annotations

from state_saver.errors import GuardStateError, StateSaverError, UnsupportedTargetError
from state_saver.saver import (
    StateSaver,
    attribute_saver,
    item_saver,
    preserves_state,
    state_saver,
)
from state_saver.targets import AttributeTarget, ItemTarget, ObjectTarget, Target

__all__ = [
    "AttributeTarget",
    "GuardStateError",
    "ItemTarget",
    "ObjectTarget",
    "StateSaver",
    "StateSaverError",
    "Target",
    "UnsupportedTargetError",
    "attribute_saver",
    "item_saver",
    "preserves_state",
    "state_saver",
]
