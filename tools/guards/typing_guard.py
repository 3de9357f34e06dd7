from __future__ import annotations

import ast
import sys
import tokenize
from io import StringIO
from pathlib import Path

from tools.guards.common import iter_python_files, parse, report

FORBIDDEN_IMPORTS = {"Any", "cast"}


class _TypingVisitor(ast.NodeVisitor):
    def __init__(self, path: Path) -> None:
        self.path = path
        self.errors: list[str] = []

    def _flag(self, node: ast.AST, message: str) -> None:
        self.errors.append(f"{self.path}:{getattr(node, 'lineno', 0)} {message}")

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        if node.module == "typing":
            for alias in node.names:
                if alias.name in FORBIDDEN_IMPORTS:
                    self._flag(node, f"forbidden typing import '{alias.name}'")
        self.generic_visit(node)

    def visit_Attribute(self, node: ast.Attribute) -> None:
        if (
            isinstance(node.value, ast.Name)
            and node.value.id == "typing"
            and node.attr in FORBIDDEN_IMPORTS
        ):
            self._flag(node, f"forbidden use of typing.{node.attr}")
        self.generic_visit(node)

    def visit_Call(self, node: ast.Call) -> None:
        if isinstance(node.func, ast.Name) and node.func.id == "cast":
            self._flag(node, "forbidden use of cast()")
        self.generic_visit(node)

    def visit_Name(self, node: ast.Name) -> None:
        if node.id == "Any":
            self._flag(node, "forbidden type 'Any'")


def check_path(path: Path) -> list[str]:
    text, tree = parse(path)
    visitor = _TypingVisitor(path)
    visitor.visit(tree)

    # Comments only; string literals mentioning the marker are fine.
    ignores = [
        f"{path}:{tok.start[0]} forbidden 'type: ignore'"
        for tok in tokenize.generate_tokens(StringIO(text).readline)
        if tok.type == tokenize.COMMENT and "type: ignore" in tok.string
    ]
    return visitor.errors + ignores


def run(roots: list[str]) -> int:
    errors: list[str] = []
    for path in iter_python_files(roots):
        errors.extend(check_path(path))
    return report(errors)


def main() -> int:
    return run(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(main())
