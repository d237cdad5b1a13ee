import pytest

from transit_assist.config.settings import CacheSettings
from transit_assist.core.cache_store import CacheStore
from tests.factories import FakeClock, FakeRemoteCache


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def remote() -> FakeRemoteCache:
    return FakeRemoteCache()


@pytest.fixture
def cache_settings() -> CacheSettings:
    return CacheSettings(remote_timeout_seconds=0.05)


@pytest.fixture
def local_cache(clock, cache_settings) -> CacheStore:
    """Cache store without a remote tier"""
    return CacheStore(remote=None, settings=cache_settings, clock=clock)


@pytest.fixture
def cache(remote, clock, cache_settings) -> CacheStore:
    return CacheStore(remote=remote, settings=cache_settings, clock=clock)
