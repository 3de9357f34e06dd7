from __future__ import annotations

import ast
import sys
from pathlib import Path

from tools.guards.common import iter_python_files, parse, report


def _is_print(node: ast.AST) -> bool:
    return (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Name)
        and node.func.id == "print"
    )


def _is_get_logger(node: ast.AST) -> bool:
    return (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Attribute)
        and node.func.attr == "getLogger"
        and isinstance(node.func.value, ast.Name)
        and node.func.value.id == "logging"
    )


def check_path(path: Path) -> list[str]:
    _, tree = parse(path)
    # The logging module itself is where loggers are handed out.
    owns_loggers = path.name == "logging.py"
    errors: list[str] = []
    for node in ast.walk(tree):
        if _is_print(node):
            errors.append(f"{path}:{node.lineno} use logger; 'print' is forbidden")
        elif _is_get_logger(node) and not owns_loggers:
            errors.append(
                f"{path}:{node.lineno} use get_logger(); 'logging.getLogger' is forbidden"
            )
    return errors


def run(roots: list[str]) -> int:
    errors: list[str] = []
    for path in iter_python_files(roots):
        errors.extend(check_path(path))
    return report(errors)


def main() -> int:
    return run(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(main())
