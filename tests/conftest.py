"""Shared test fixtures.

Provides:
- stores: Fresh in-memory RecordStores per test
- fixed_now: Deterministic clock value for services
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.salepro.records.registry import RecordStores, build_memory_stores


@pytest.fixture
def stores() -> RecordStores:
    """Empty in-memory stores for every entity."""
    return build_memory_stores()


@pytest.fixture
def fixed_now() -> datetime:
    """A fixed UTC timestamp used as the service clock."""
    return datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)
