"""Pytest configuration for test isolation.

Puts the workspace ``packages/`` directory (and the repo root, for
``tests.helpers``) on ``sys.path`` so ``revenue_analysis`` imports without an
install, and clears every environment variable the package reads so a
developer's ``.env``/shell settings never leak into assertions.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
# Ensure `packages/` precedes the repo root on sys.path so local packages resolve first.
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]

_ENV_VARS = (
    "OPENAI_API_KEY",
    "REVENUE_ANALYSIS_INSIGHT_MODEL",
    "REVENUE_ANALYSIS_INSIGHT_CONCURRENCY",
    "REVENUE_ANALYSIS_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
