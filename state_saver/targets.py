"""Adapters over the storage a guard protects.

A target knows how to read the current value of some storage and how to
write a value back into it. The guard never touches storage any other way.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import MutableMapping, MutableSequence, MutableSet
from enum import Enum
from typing import Generic, TypeVar

from state_saver.errors import UnsupportedTargetError

T = TypeVar("T")
K = TypeVar("K")
V = TypeVar("V")


class Missing(Enum):
    """Marks a binding that did not exist when it was read."""

    MISSING = "MISSING"


MISSING = Missing.MISSING

_IMMUTABLE = (int, float, complex, str, bytes, tuple, frozenset, range, type(None))


class Target(ABC, Generic[T]):
    @abstractmethod
    def read(self) -> T: ...

    @abstractmethod
    def write(self, value: T) -> None: ...

    @abstractmethod
    def describe(self) -> str: ...

    def check_snapshot(self, snapshot: T) -> None:
        """Reject a snapshot that cannot serve as a rollback point."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.describe()}>"


def _slot_names(cls: type) -> list[str]:
    names: list[str] = []
    for klass in cls.__mro__:
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name in ("__dict__", "__weakref__"):
                continue
            # Private slots are stored under their mangled name.
            if name.startswith("__") and not name.endswith("__"):
                name = f"_{klass.__name__.lstrip('_')}{name}"
            if name not in names:
                names.append(name)
    return names


def assign_in_place(obj: object, value: object) -> None:
    """Make ``obj`` hold the contents of ``value`` without rebinding ``obj``."""
    if isinstance(obj, MutableSequence):
        # deque and friends have no slice assignment.
        obj.clear()
        obj.extend(value)
    elif isinstance(obj, MutableMapping):
        obj.clear()
        obj.update(value)
    elif isinstance(obj, MutableSet):
        obj.clear()
        for element in value:
            obj.add(element)
    else:
        if hasattr(obj, "__dict__"):
            state = obj.__dict__
            state.clear()
            state.update(getattr(value, "__dict__", {}))
        for name in _slot_names(type(obj)):
            if hasattr(value, name):
                object.__setattr__(obj, name, getattr(value, name))
            elif hasattr(obj, name):
                object.__delattr__(obj, name)


def supports_in_place(obj: object) -> bool:
    if isinstance(obj, _IMMUTABLE) or isinstance(obj, type):
        return False
    if isinstance(obj, (MutableSequence, MutableMapping, MutableSet)):
        return True
    return hasattr(obj, "__dict__") or bool(_slot_names(type(obj)))


class ObjectTarget(Target[T]):
    """The guarded value is a mutable object, restored in place.

    Every existing reference to the object observes the rollback, which is
    what copy-assignment into the original storage amounts to in Python.
    """

    def __init__(self, obj: T) -> None:
        if isinstance(obj, type):
            raise UnsupportedTargetError(
                obj, "class namespaces are read-only; guard single attributes instead"
            )
        if not supports_in_place(obj):
            raise UnsupportedTargetError(obj)
        self._obj = obj

    def read(self) -> T:
        return self._obj

    def write(self, value: T) -> None:
        assign_in_place(self._obj, value)

    def check_snapshot(self, snapshot: T) -> None:
        # Functions, enum members and the like copy to themselves.
        if snapshot is self._obj:
            raise UnsupportedTargetError(
                self._obj, "copying it returns the same object, so nothing is saved"
            )

    def describe(self) -> str:
        return f"{type(self._obj).__name__}@{id(self._obj):#x}"


def _is_data_descriptor(attr: object) -> bool:
    return hasattr(type(attr), "__set__") or hasattr(type(attr), "__delete__")


class AttributeTarget(Target[object | Missing]):
    """The binding ``owner.name``.

    Only a binding held by the owner itself counts; a value inherited from
    the class reads as ``MISSING`` so restoring removes the shadowing
    instance attribute again.
    """

    def __init__(self, owner: object, name: str) -> None:
        self._owner = owner
        self._name = name

    def _descriptor_managed(self) -> bool:
        attr = inspect.getattr_static(type(self._owner), self._name, MISSING)
        return attr is not MISSING and _is_data_descriptor(attr)

    def _is_bound(self) -> bool:
        namespace = getattr(self._owner, "__dict__", None)
        if self._descriptor_managed() or namespace is None:
            return hasattr(self._owner, self._name)
        return self._name in namespace

    def read(self) -> object | Missing:
        if not self._is_bound():
            return MISSING
        return getattr(self._owner, self._name)

    def write(self, value: object | Missing) -> None:
        if value is MISSING:
            if self._is_bound():
                delattr(self._owner, self._name)
            return
        setattr(self._owner, self._name, value)

    def describe(self) -> str:
        return f"{type(self._owner).__name__}.{self._name}"


class ItemTarget(Target[V | Missing], Generic[K, V]):
    """The binding ``container[key]``.

    Mappings (dicts, ``os.environ``, ``globals()``...) may lack the key; it is
    deleted again on restore. Sequences are addressed by index, which must
    exist when the guard is created.
    """

    def __init__(
        self, container: MutableMapping[K, V] | MutableSequence[V], key: K
    ) -> None:
        if not isinstance(container, (MutableMapping, MutableSequence)):
            raise UnsupportedTargetError(
                container, "items can only be guarded in mutable mappings or sequences"
            )
        self._container = container
        self._key = key

    def read(self) -> V | Missing:
        container = self._container
        if isinstance(container, MutableSequence):
            # IndexError for an index that does not exist.
            return container[self._index()]
        if self._key not in container:
            return MISSING
        return container[self._key]

    def write(self, value: V | Missing) -> None:
        container = self._container
        if isinstance(container, MutableSequence):
            if isinstance(value, Missing):
                raise IndexError(f"index {self._key!r} was never bound")
            container[self._index()] = value
            return
        if isinstance(value, Missing):
            if self._key in container:
                del container[self._key]
            return
        container[self._key] = value

    def _index(self) -> int:
        key = self._key
        if not isinstance(key, int) or isinstance(key, bool):
            raise TypeError(f"sequence index must be an int, not {type(key).__name__}")
        if not -len(self._container) <= key < len(self._container):
            raise IndexError(f"sequence index {key} out of range")
        return key

    def describe(self) -> str:
        return f"{type(self._container).__name__}[{self._key!r}]"


def as_target(value: T | Target[T]) -> Target[T]:
    if isinstance(value, Target):
        return value
    return ObjectTarget(value)
