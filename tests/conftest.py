"""Shared fixtures for client and store tests."""

from __future__ import annotations

import pytest
from factories import FakeClient, FakeClock

from unmatched_line.cache import ResponseCache
from unmatched_line.stores.registry import SliceRegistry


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> ResponseCache:
    return ResponseCache(ttl_seconds=600, clock=clock)


@pytest.fixture
def registry() -> SliceRegistry:
    return SliceRegistry()
