"""
Global conftest for labelkv tests.

1. A pretty unified-diff assertion helper for clearer dict-vs-dict failures.
2. Shared fixtures: an empty in-memory store and settings pinned to it.
"""

import json
import difflib

import pytest

from core_config import Settings
from core_storage import MemoryStore


# --------------------------------------------------------------------------- #
# Pretty diff for dict comparisons                                            #
# --------------------------------------------------------------------------- #
def pytest_assertrepr_compare(op, left, right):
    """Pretty unified-diff output when comparing two dicts with ==."""
    if isinstance(left, dict) and isinstance(right, dict) and op == "==":
        lhs = json.dumps(left, indent=2, sort_keys=True, default=str).splitlines()
        rhs = json.dumps(right, indent=2, sort_keys=True, default=str).splitlines()
        return [""] + list(
            difflib.unified_diff(lhs, rhs, fromfile="left", tofile="right")
        )


@pytest.fixture
def settings(monkeypatch):
    """Settings with the in-memory backend regardless of the caller's env/.env."""
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("ERROR_LANGUAGE", "en")
    return Settings()


@pytest.fixture
def store():
    return MemoryStore()
