"""
Unit tests for the Redis remote cache operation handler
"""
import json

import pytest

from transit_assist.config.settings import RedisSettings
from transit_assist.core.cache_client import RedisCacheClient
from transit_assist.models.cache_models import CacheAction, CacheRequest


class FakeRedis:
    """Subset of redis.asyncio.Redis used by the handler"""

    def __init__(self):
        self.data = {}
        self.ttls = {}
        self.closed = False
        self.broken = False

    def _check(self):
        if self.broken:
            raise ConnectionError("connection reset")

    async def ping(self):
        self._check()
        return True

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set(self, key, value):
        self._check()
        self.data[key] = value
        return True

    async def setex(self, key, ttl, value):
        self._check()
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, key):
        self._check()
        return 1 if self.data.pop(key, None) is not None else 0

    async def exists(self, key):
        self._check()
        return 1 if key in self.data else 0

    async def expire(self, key, ttl):
        self._check()
        if key not in self.data:
            return False
        self.ttls[key] = ttl
        return True

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def client(fake_redis):
    return RedisCacheClient(RedisSettings(), redis_client=fake_redis)


@pytest.mark.asyncio
async def test_set_with_ttl_uses_setex_and_single_json_encoding(client, fake_redis):
    response = await client.execute(CacheRequest(action=CacheAction.SET, key="k", value={"a": 1}, ttl=60))

    assert response.success is True
    assert fake_redis.ttls["k"] == 60
    assert json.loads(fake_redis.data["k"]) == {"a": 1}


@pytest.mark.asyncio
async def test_set_without_ttl(client, fake_redis):
    await client.execute(CacheRequest(action=CacheAction.SET, key="k", value=[1, 2]))
    assert "k" not in fake_redis.ttls
    assert fake_redis.data["k"] == "[1, 2]"


@pytest.mark.asyncio
async def test_get_decodes_value(client, fake_redis):
    fake_redis.data["k"] = json.dumps({"a": 1})

    response = await client.execute(CacheRequest(action=CacheAction.GET, key="k"))
    assert response.success is True
    assert response.data == {"a": 1}

    missing = await client.execute(CacheRequest(action=CacheAction.GET, key="missing"))
    assert missing.success is True
    assert missing.data is None


@pytest.mark.asyncio
async def test_del_and_exists(client, fake_redis):
    fake_redis.data["k"] = "1"

    exists = await client.execute(CacheRequest(action=CacheAction.EXISTS, key="k"))
    assert exists.data is True

    await client.execute(CacheRequest(action=CacheAction.DEL, key="k"))

    exists = await client.execute(CacheRequest(action=CacheAction.EXISTS, key="k"))
    assert exists.data is False


@pytest.mark.asyncio
async def test_expire(client, fake_redis):
    fake_redis.data["k"] = "1"
    response = await client.execute(CacheRequest(action=CacheAction.EXPIRE, key="k", ttl=5))
    assert response.success is True
    assert response.data is True
    assert fake_redis.ttls["k"] == 5


@pytest.mark.asyncio
async def test_malformed_requests_are_failure_responses(client):
    no_value = await client.execute(CacheRequest(action=CacheAction.SET, key="k"))
    assert no_value.success is False
    assert "Value is required" in no_value.error

    no_ttl = await client.execute(CacheRequest(action=CacheAction.EXPIRE, key="k"))
    assert no_ttl.success is False
    assert "TTL is required" in no_ttl.error


@pytest.mark.asyncio
async def test_unconfigured_endpoint_is_failure_response():
    client = RedisCacheClient(RedisSettings(host=None))

    response = await client.execute(CacheRequest(action=CacheAction.GET, key="k"))

    assert response.success is False
    assert response.error == "Redis endpoint not configured"
    assert client.is_available is False


@pytest.mark.asyncio
async def test_transport_error_drops_connection(client, fake_redis):
    fake_redis.broken = True

    response = await client.execute(CacheRequest(action=CacheAction.GET, key="k"))

    assert response.success is False
    assert "connection reset" in response.error
    assert client.is_connected is False
    assert fake_redis.closed is True


@pytest.mark.asyncio
async def test_close(client, fake_redis):
    await client.close()
    assert fake_redis.closed is True
    assert client.is_connected is False


def test_redis_url():
    assert RedisSettings(host=None).url is None
    assert RedisSettings(host="placeholder").url is None
    assert RedisSettings(host="cache", port=6380, db=2).url == "redis://cache:6380/2"
    assert RedisSettings(host="cache", password="pw").url == "redis://:pw@cache:6379/0"
