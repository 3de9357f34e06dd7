"""Internal tooling for repository guard checks.

This package hosts guard scripts that enforce strict standards such as:
- No use of typing.Any or casts, no "type: ignore" comments
- No bare except; handlers re-raise or report through logger.exception
- No use of print, and loggers come from state_saver.logging.get_logger

Run them all with `python -m tools.guard`.
"""
