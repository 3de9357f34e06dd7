from __future__ import annotations

import os
from collections import deque
from enum import Enum

import pytest

from state_saver import (
    ItemTarget,
    ObjectTarget,
    StateSaver,
    UnsupportedTargetError,
    attribute_saver,
    item_saver,
)
from state_saver.targets import MISSING, assign_in_place, supports_in_place
from tests.support import OTHER_VALUE, VALUE, A


class Slotted:
    __slots__ = ("x", "__hidden")

    def __init__(self, x: int) -> None:
        self.x = x
        self.__hidden = x * 2

    @property
    def hidden(self) -> int:
        return self.__hidden


class Point:
    __slots__ = ("x", "y")


@pytest.mark.parametrize("value", [1, 1.5, "text", b"raw", (1, 2), frozenset(), None])
def test_immutable_values_are_rejected(value: object) -> None:
    assert not supports_in_place(value)
    with pytest.raises(UnsupportedTargetError) as info:
        StateSaver(value)
    assert isinstance(info.value, TypeError)
    assert "attribute or item" in str(info.value)


def test_dict_restored_in_place() -> None:
    data = {"a": 1}
    with StateSaver(data):
        data["b"] = 2
        del data["a"]
    assert data == {"a": 1}


def test_set_restored_in_place() -> None:
    seen = {1, 2}
    alias = seen
    with StateSaver(seen):
        seen.discard(1)
        seen.add(3)
    assert alias is seen
    assert seen == {1, 2}


def test_bytearray_restored_in_place() -> None:
    buf = bytearray(b"abc")
    with StateSaver(buf):
        buf.extend(b"def")
    assert buf == bytearray(b"abc")


def test_slotted_object_restored_including_private_slots() -> None:
    obj = Slotted(3)
    with StateSaver(obj):
        obj.x = 10
        object.__setattr__(obj, "_Slotted__hidden", 0)
    assert obj.x == 3
    assert obj.hidden == 6


def test_unset_slot_is_deleted_again() -> None:
    point = Point()
    point.x = 1
    with StateSaver(point):
        point.y = 2
    assert point.x == 1
    assert not hasattr(point, "y")


def test_assign_in_place_replaces_object_state() -> None:
    a = A(VALUE)
    assign_in_place(a, A(OTHER_VALUE))
    assert a.i == OTHER_VALUE


def test_attribute_target_restores_immutable_binding() -> None:
    a = A(VALUE)
    with attribute_saver(a, "i") as saver:
        a.i = OTHER_VALUE
        assert saver.snapshot == VALUE
    assert a.i == VALUE


def test_attribute_missing_at_construction_is_deleted() -> None:
    a = A(VALUE)
    with attribute_saver(a, "extra") as saver:
        assert saver.snapshot is MISSING
        a.__dict__["extra"] = "added"
    assert "extra" not in a.__dict__


def test_item_target_restores_key() -> None:
    counters = {"hits": 1}
    with item_saver(counters, "hits"):
        counters["hits"] += 1
    assert counters == {"hits": 1}


def test_item_missing_at_construction_is_deleted() -> None:
    counters: dict[str, int] = {}
    with item_saver(counters, "hits"):
        counters["hits"] = 5
    assert counters == {}


def test_item_missing_and_still_missing_is_noop() -> None:
    target: ItemTarget[str, int] = ItemTarget({}, "k")
    target.write(MISSING)
    assert target.read() is MISSING


def test_environment_variable_rolled_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STATE_SAVER_DEMO", "before")
    with StateSaver.of_item(os.environ, "STATE_SAVER_DEMO"):
        os.environ["STATE_SAVER_DEMO"] = "after"
    assert os.environ["STATE_SAVER_DEMO"] == "before"


def test_target_describe_and_repr() -> None:
    a = A(VALUE)
    saver = attribute_saver(a, "i")
    assert saver.target.describe() == "A.i"
    assert "A.i" in repr(saver)
    assert "armed" in repr(saver)
    assert repr(ObjectTarget([])).startswith("<ObjectTarget list@")
    saver.dismiss()
    assert "dismissed" in repr(saver)


class Color(Enum):
    RED = "red"


class SelfCopyingDict(dict[str, int]):
    def __deepcopy__(self, memo: dict[int, object]) -> SelfCopyingDict:
        return self


class Config:
    retries = 3


class ChildConfig(Config):
    pass


class Thermostat:
    def __init__(self) -> None:
        self._celsius = 20

    @property
    def celsius(self) -> int:
        return self._celsius

    @celsius.setter
    def celsius(self, value: int) -> None:
        self._celsius = value


def _plain_function() -> None:
    return None


def test_list_item_restored_by_index() -> None:
    values = [5, 6]
    with item_saver(values, 0) as saver:
        assert saver.snapshot == 5
        values[0] = 99
    assert values == [5, 6]


def test_list_item_negative_index() -> None:
    values = [5, 6]
    with item_saver(values, -1):
        values[-1] = 0
    assert values == [5, 6]


def test_list_item_never_deletes_other_elements() -> None:
    values = [5, 6]
    with item_saver(values, 0):
        # The index number showing up as a value must not matter.
        values[1] = 0
    assert values == [5, 0]


def test_list_index_must_exist_at_construction() -> None:
    with pytest.raises(IndexError):
        item_saver([5, 6], 2)
    with pytest.raises(TypeError):
        item_saver([5, 6], True)


def test_list_item_restore_after_shrink_propagates() -> None:
    values = [5, 6]
    with item_saver(values, 1) as saver:
        values.pop()
        with pytest.raises(IndexError):
            saver.restore()
        saver.dismiss()
    assert values == [5]


def test_deque_restored_in_place() -> None:
    queue = deque([1, 2])
    alias = queue
    with StateSaver(queue):
        queue.append(3)
        queue.popleft()
    assert alias is queue
    assert queue == deque([1, 2])


def test_class_object_is_rejected_but_its_attribute_can_be_guarded() -> None:
    with pytest.raises(UnsupportedTargetError, match="class namespaces"):
        StateSaver(Config)
    with attribute_saver(Config, "retries"):
        Config.retries = 0
    assert Config.retries == 3


def test_inherited_class_attribute_is_not_shadowed_after_restore() -> None:
    with attribute_saver(ChildConfig, "retries") as saver:
        assert saver.snapshot is MISSING
        ChildConfig.retries = 0
    assert "retries" not in vars(ChildConfig)
    assert ChildConfig.retries == 3


def test_inherited_instance_attribute_is_not_shadowed_after_restore() -> None:
    config = Config()
    with attribute_saver(config, "retries") as saver:
        assert saver.snapshot is MISSING
        config.retries = 0
    assert "retries" not in vars(config)
    assert config.retries == 3


def test_property_attribute_restored_through_setter() -> None:
    thermostat = Thermostat()
    with attribute_saver(thermostat, "celsius") as saver:
        assert saver.snapshot == 20
        thermostat.celsius = 30
    assert thermostat.celsius == 20


def test_slot_attribute_restored() -> None:
    point = Point()
    point.x = 1
    with attribute_saver(point, "x"):
        point.x = 2
    assert point.x == 1


def test_function_is_rejected_and_left_intact() -> None:
    _plain_function.__dict__["flag"] = 1
    with pytest.raises(UnsupportedTargetError, match="same object"):
        StateSaver(_plain_function)
    assert _plain_function.__dict__["flag"] == 1


def test_enum_member_is_rejected() -> None:
    with pytest.raises(UnsupportedTargetError):
        StateSaver(Color.RED)
    assert Color.RED.value == "red"


def test_mapping_copying_to_itself_is_rejected() -> None:
    data = SelfCopyingDict(a=1)
    with pytest.raises(UnsupportedTargetError):
        StateSaver(data)
    assert data == {"a": 1}
