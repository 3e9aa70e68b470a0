"""Shared fixtures for the PHP review tests."""

from pathlib import Path

import pytest

from php_review.config import EngineConfig
from php_review.engine.context import EngineContext


@pytest.fixture
def write_php(tmp_path: Path):
    """Write a PHP file below tmp_path and return its path as a string."""

    def _write(relative: str, content: str) -> str:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def context() -> EngineContext:
    """A fresh engine context with default settings."""
    return EngineContext.create(EngineConfig())
