from __future__ import annotations

VALUE = -1
OTHER_VALUE = 1


class A:
    def __init__(self, i: int = 0) -> None:
        self.i = i


class Box:
    def __init__(self, items: list[str]) -> None:
        self.items = items
