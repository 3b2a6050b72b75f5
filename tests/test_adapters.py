"""Tests for store adapters."""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from redis.exceptions import ConnectionError as RedisConnectionError
from webhook_aggregator.adapters.memory import InMemoryAdapter
from webhook_aggregator.adapters.redis_store import RedisAdapter
from webhook_aggregator.config import Settings
from webhook_aggregator.errors import StoreUnavailableError
from webhook_aggregator.services.aggregation_service import _create_default_adapter


@pytest.mark.asyncio
async def test_memory_adapter_values():
    """Plain records support set/get/pop/delete and prefix listing."""
    adapter = InMemoryAdapter()

    await adapter.set("queue:a", b"1")
    await adapter.set("queue:b", b"2")
    await adapter.set("status:a", b"online")

    assert await adapter.get("queue:a") == b"1"
    assert sorted(await adapter.keys("queue:")) == ["queue:a", "queue:b"]
    assert await adapter.pop("queue:a") == b"1"
    assert await adapter.get("queue:a") is None
    assert await adapter.delete("queue:b", "missing") == 1


@pytest.mark.asyncio
async def test_memory_adapter_lists_trim_oldest():
    adapter = InMemoryAdapter()

    for i in range(5):
        await adapter.list_append("history:sent", str(i).encode(), max_len=3)

    assert await adapter.list_range("history:sent") == [b"2", b"3", b"4"]
    assert await adapter.keys("history:") == ["history:sent"]
    assert await adapter.delete("history:sent") == 1
    assert await adapter.list_range("history:sent") == []


def mock_redis():
    client = MagicMock()
    client.get = AsyncMock(return_value=b"value")
    client.set = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    client.getdel = AsyncMock(return_value=b"value")
    client.lrange = AsyncMock(return_value=[b"a", b"b"])
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    return client


@pytest.mark.asyncio
async def test_redis_adapter_set_with_ttl():
    with patch("webhook_aggregator.adapters.redis_store.Redis") as mock_redis_class:
        client = mock_redis()
        mock_redis_class.from_url.return_value = client

        adapter = RedisAdapter(redis_url="redis://localhost:6379")
        await adapter.set("queue:k1", b"{}", ttl=86400)
        await adapter.set("status:k1", b"online")

        client.set.assert_any_await("queue:k1", b"{}", ex=86400)
        client.set.assert_any_await("status:k1", b"online", ex=None)


@pytest.mark.asyncio
async def test_redis_adapter_pop_uses_getdel():
    """Drain maps to an atomic GETDEL."""
    with patch("webhook_aggregator.adapters.redis_store.Redis") as mock_redis_class:
        client = mock_redis()
        mock_redis_class.from_url.return_value = client

        adapter = RedisAdapter(redis_url="redis://localhost:6379", namespace="agg:")
        assert await adapter.pop("queue:k1") == b"value"
        client.getdel.assert_awaited_once_with("agg:queue:k1")


@pytest.mark.asyncio
async def test_redis_adapter_list_append_trims():
    with patch("webhook_aggregator.adapters.redis_store.Redis") as mock_redis_class:
        client = mock_redis()
        pipe = MagicMock()
        pipe.execute = AsyncMock(return_value=[1, True])
        client.pipeline.return_value.__aenter__ = AsyncMock(return_value=pipe)
        client.pipeline.return_value.__aexit__ = AsyncMock(return_value=False)
        mock_redis_class.from_url.return_value = client

        adapter = RedisAdapter(redis_url="redis://localhost:6379")
        await adapter.list_append("history:received", b"x", max_len=1000)

        pipe.rpush.assert_called_once_with("history:received", b"x")
        pipe.ltrim.assert_called_once_with("history:received", -1000, -1)
        pipe.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_redis_adapter_keys_strips_namespace():
    with patch("webhook_aggregator.adapters.redis_store.Redis") as mock_redis_class:
        client = mock_redis()

        async def scan_iter(match):
            assert match == "agg:status:*"
            for raw in (b"agg:status:a", b"agg:status:b"):
                yield raw

        client.scan_iter = scan_iter
        mock_redis_class.from_url.return_value = client

        adapter = RedisAdapter(redis_url="redis://localhost:6379", namespace="agg:")
        assert await adapter.keys("status:") == ["status:a", "status:b"]


@pytest.mark.asyncio
async def test_redis_adapter_errors_become_store_unavailable():
    with patch("webhook_aggregator.adapters.redis_store.Redis") as mock_redis_class:
        client = mock_redis()
        client.get.side_effect = RedisConnectionError("Connection refused")
        mock_redis_class.from_url.return_value = client

        adapter = RedisAdapter(redis_url="redis://localhost:6379")
        with pytest.raises(StoreUnavailableError) as exc_info:
            await adapter.get("queue:k1")

        assert exc_info.value.operation == "get"


@pytest.mark.asyncio
async def test_redis_adapter_health_check():
    with patch("webhook_aggregator.adapters.redis_store.Redis") as mock_redis_class:
        client = mock_redis()
        mock_redis_class.from_url.return_value = client

        adapter = RedisAdapter(redis_url="redis://localhost:6379")
        assert await adapter.health_check() is True

        client.ping.side_effect = Exception("Connection refused")
        assert await adapter.health_check() is False

        await adapter.close()
        client.aclose.assert_awaited_once()


def test_adapter_selection_memory_by_default():
    assert isinstance(_create_default_adapter(Settings(STORE_ADAPTER="memory")), InMemoryAdapter)


def test_adapter_selection_redis_falls_back_without_url():
    settings = Settings(STORE_ADAPTER="redis", REDIS_URL=None)
    assert isinstance(_create_default_adapter(settings), InMemoryAdapter)


def test_adapter_selection_redis():
    settings = Settings(STORE_ADAPTER="redis", REDIS_URL="redis://localhost:6379/0")
    adapter = _create_default_adapter(settings)
    assert isinstance(adapter, RedisAdapter)
    assert adapter.redis_url.startswith("redis://localhost:6379")
