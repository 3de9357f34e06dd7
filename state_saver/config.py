from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, TypeGuard

CopyMode = Literal["deep", "shallow"]


def is_copy_mode(value: str) -> TypeGuard[CopyMode]:
    return value in ("deep", "shallow")


@dataclass(frozen=True)
class Settings:
    """Library settings loaded from environment in a type-safe, framework-free way."""

    copy_mode: CopyMode
    log_level: str

    @staticmethod
    def from_env() -> Settings:
        prefix = "STATE_SAVER_"
        raw_mode = os.getenv(f"{prefix}COPY_MODE", "deep").strip().lower()
        copy_mode: CopyMode = raw_mode if is_copy_mode(raw_mode) else "deep"
        log_level = os.getenv(f"{prefix}LOG_LEVEL", "INFO").strip() or "INFO"
        return Settings(copy_mode=copy_mode, log_level=log_level)
