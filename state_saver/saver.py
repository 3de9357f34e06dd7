"""Scoped state guard.

``StateSaver`` copies the guarded value when it is created and writes that
copy back when the ``with`` block holding it ends, on every exit path::

    with StateSaver(settings) as saver:
        settings.retries = 0
        run_once()
        saver.dismiss()  # keep the change

If ``run_once`` raises, ``settings`` is rolled back before the exception
leaves the block. Without the final ``dismiss()`` the rollback happens on
normal exit too.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, MutableMapping, MutableSequence
from enum import Enum
from functools import wraps
from types import TracebackType
from typing import Generic, NoReturn, ParamSpec, TypeVar

from state_saver.config import CopyMode, Settings
from state_saver.errors import GuardStateError
from state_saver.logging import get_logger
from state_saver.targets import AttributeTarget, ItemTarget, Missing, Target, as_target

T = TypeVar("T")
K = TypeVar("K")
V = TypeVar("V")
R = TypeVar("R")
P = ParamSpec("P")

_logger = get_logger(__name__)


class _Phase(Enum):
    ARMED = "armed"
    CLOSED = "closed"
    TRANSFERRED = "transferred"


def _copier(mode: CopyMode) -> Callable[[T], T]:
    if mode == "shallow":
        return copy.copy
    return copy.deepcopy


class StateSaver(Generic[T]):
    """Restores one piece of state when its scope ends, unless dismissed.

    The snapshot is taken in the constructor; a failing copy propagates and
    leaves no guard behind. Leaving the ``with`` block (or calling
    :meth:`close`) writes the snapshot back unless :meth:`dismiss` was called,
    and never raises: a failing write is logged instead. :meth:`restore`
    writes the snapshot on demand and lets failures propagate.

    Guards cannot be copied or pickled. :meth:`transfer` hands the scope-exit
    responsibility to a new guard object.
    """

    def __init__(
        self, target: T | Target[T], *, copy_mode: CopyMode | None = None
    ) -> None:
        self._target: Target[T] = as_target(target)
        self._copy_mode: CopyMode = copy_mode or Settings.from_env().copy_mode
        self._copy: Callable[[T], T] = _copier(self._copy_mode)
        self._snapshot: T = self._copy(self._target.read())
        self._target.check_snapshot(self._snapshot)
        # Described once here so that scope exit never calls into the target
        # for anything but the write.
        self._label = self._target.describe()
        self._dismissed = False
        self._phase = _Phase.ARMED
        self._entered = False
        self._log_debug("state snapshot taken", "snapshot")

    @classmethod
    def of_attribute(
        cls, owner: object, name: str, *, copy_mode: CopyMode | None = None
    ) -> StateSaver[object | Missing]:
        """Guard the binding ``owner.name``; an absent attribute is deleted on restore."""
        return cls(AttributeTarget(owner, name), copy_mode=copy_mode)

    @classmethod
    def of_item(
        cls,
        container: MutableMapping[K, V] | MutableSequence[V],
        key: K,
        *,
        copy_mode: CopyMode | None = None,
    ) -> StateSaver[V | Missing]:
        """Guard ``container[key]``; a mapping key absent now is deleted on restore."""
        return cls(ItemTarget(container, key), copy_mode=copy_mode)

    @property
    def target(self) -> Target[T]:
        return self._target

    @property
    def snapshot(self) -> T:
        """A copy of the rollback point; mutating it does not affect the guard."""
        return self._copy(self._snapshot)

    @property
    def dismissed(self) -> bool:
        return self._dismissed

    @property
    def armed(self) -> bool:
        return self._phase is _Phase.ARMED

    def dismiss(self) -> None:
        """Opt out of the scope-exit restore. Cannot be undone."""
        if not self._dismissed:
            self._dismissed = True
            self._log_debug("state saver dismissed", "dismiss")

    def restore(self, force: bool = False) -> None:
        """Write the snapshot back now.

        A dismissed guard only restores when ``force`` is true. Neither the
        dismissal nor the later scope-exit restore is affected by this call.
        """
        self._ensure_usable("restore")
        if self._dismissed and not force:
            return
        self._write_snapshot()

    def close(self) -> None:
        """Run the scope-exit restore. Only the first call on an armed guard acts."""
        if self._phase is not _Phase.ARMED:
            return
        self._phase = _Phase.CLOSED
        if self._dismissed:
            self._log_debug("scope exit without restore", "skip")
            return
        try:
            self._write_snapshot()
        except Exception:
            _logger.exception(
                "scope-exit restore failed",
                extra={"target": self._label, "event": "restore_failed"},
            )

    def transfer(self) -> StateSaver[T]:
        """Move the scope-exit responsibility to a new guard.

        The new guard shares target, snapshot and dismissal; this one becomes
        inert.
        """
        self._ensure_usable("transfer")
        cls = type(self)
        moved: StateSaver[T] = cls.__new__(cls)
        moved._target = self._target
        moved._label = self._label
        moved._copy_mode = self._copy_mode
        moved._copy = self._copy
        moved._snapshot = self._snapshot
        moved._dismissed = self._dismissed
        moved._phase = _Phase.ARMED
        moved._entered = False
        self._phase = _Phase.TRANSFERRED
        self._log_debug("state saver transferred", "transfer")
        return moved

    def __enter__(self) -> StateSaver[T]:
        self._ensure_usable("enter")
        if self._entered:
            raise GuardStateError(f"{self!r} is already in use by a with block")
        self._entered = True
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __copy__(self) -> NoReturn:
        raise TypeError(f"{type(self).__name__} cannot be copied; use transfer()")

    def __deepcopy__(self, memo: dict[int, object]) -> NoReturn:
        raise TypeError(f"{type(self).__name__} cannot be copied; use transfer()")

    def __reduce_ex__(self, protocol: object) -> NoReturn:
        raise TypeError(f"{type(self).__name__} cannot be pickled")

    def __repr__(self) -> str:
        flags = self._phase.value + (", dismissed" if self._dismissed else "")
        return f"<{type(self).__name__} {self._label} ({flags})>"

    def _ensure_usable(self, action: str) -> None:
        if self._phase is _Phase.CLOSED:
            raise GuardStateError(f"cannot {action}: {self!r} has left its scope")
        if self._phase is _Phase.TRANSFERRED:
            raise GuardStateError(
                f"cannot {action}: {self!r} handed its state to another guard"
            )

    def _write_snapshot(self) -> None:
        self._target.write(self._copy(self._snapshot))
        self._log_debug("state restored", "restore")

    def _log_debug(self, message: str, event: str) -> None:
        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug(message, extra={"target": self._label, "event": event})


def state_saver(
    target: T | Target[T], *, copy_mode: CopyMode | None = None
) -> StateSaver[T]:
    """Declare a guard over ``target``.

    ``with state_saver(x):`` protects ``x`` for the block without naming the
    guard; ``with state_saver(x) as saver:`` names it for ``dismiss``/``restore``.
    """
    return StateSaver(target, copy_mode=copy_mode)


def attribute_saver(
    owner: object, name: str, *, copy_mode: CopyMode | None = None
) -> StateSaver[object | Missing]:
    return StateSaver.of_attribute(owner, name, copy_mode=copy_mode)


def item_saver(
    container: MutableMapping[K, V] | MutableSequence[V],
    key: K,
    *,
    copy_mode: CopyMode | None = None,
) -> StateSaver[V | Missing]:
    return StateSaver.of_item(container, key, copy_mode=copy_mode)


def preserves_state(
    selector: Callable[P, object], *, copy_mode: CopyMode | None = None
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Run the decorated function inside a guard over ``selector(*args, **kwargs)``.

    The selector receives the call's arguments and returns the value (or a
    ``Target``) to protect for the duration of the call.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with StateSaver(selector(*args, **kwargs), copy_mode=copy_mode):
                return func(*args, **kwargs)

        return wrapper

    return decorator
