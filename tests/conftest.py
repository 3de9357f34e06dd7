from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("STATE_SAVER_COPY_MODE", raising=False)
    monkeypatch.delenv("STATE_SAVER_LOG_LEVEL", raising=False)
