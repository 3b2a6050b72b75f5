"""Redis key-value store adapter."""
import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError
from .base import StoreAdapter
from ..errors import StoreUnavailableError
from ..config import get_settings

log = structlog.get_logger()
settings = get_settings()


class RedisAdapter(StoreAdapter):
    """Redis implementation of the store adapter.

    Plain records map to Redis strings and list records to Redis lists,
    trimmed with LTRIM on every append.
    """

    def __init__(self, redis_url: str | None = None, namespace: str = ""):
        """
        Initialize Redis adapter.

        Args:
            redis_url: Redis connection URL (defaults to settings.REDIS_URL)
            namespace: Optional prefix applied to every record key
        """
        self.redis_url = redis_url or str(settings.REDIS_URL)
        self._namespace = namespace
        self._client: Redis | None = None

    def _get_client(self) -> Redis:
        """Get or create Redis client."""
        if self._client is None:
            self._client = Redis.from_url(
                self.redis_url,
                decode_responses=False,  # Values are orjson bytes
                socket_connect_timeout=5,
                socket_timeout=5
            )
        return self._client

    def _k(self, key: str) -> str:
        return f"{self._namespace}{key}"

    def _fail(self, operation: str, error: RedisError) -> StoreUnavailableError:
        log.error("redis.operation_failed", operation=operation, error=str(error))
        return StoreUnavailableError(operation, str(error))

    async def get(self, key: str) -> bytes | None:
        try:
            return await self._get_client().get(self._k(key))
        except RedisError as e:
            raise self._fail("get", e) from e

    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        try:
            await self._get_client().set(self._k(key), value, ex=ttl or None)
        except RedisError as e:
            raise self._fail("set", e) from e

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return await self._get_client().delete(*(self._k(k) for k in keys))
        except RedisError as e:
            raise self._fail("delete", e) from e

    async def pop(self, key: str) -> bytes | None:
        try:
            return await self._get_client().getdel(self._k(key))
        except RedisError as e:
            raise self._fail("pop", e) from e

    async def keys(self, prefix: str) -> list[str]:
        try:
            found = []
            async for raw in self._get_client().scan_iter(match=f"{self._k(prefix)}*"):
                name = raw.decode() if isinstance(raw, bytes) else raw
                found.append(name[len(self._namespace):])
            return found
        except RedisError as e:
            raise self._fail("keys", e) from e

    async def list_append(self, key: str, value: bytes, max_len: int) -> None:
        try:
            async with self._get_client().pipeline(transaction=True) as pipe:
                pipe.rpush(self._k(key), value)
                pipe.ltrim(self._k(key), -max_len, -1)
                await pipe.execute()
        except RedisError as e:
            raise self._fail("list_append", e) from e

    async def list_range(self, key: str) -> list[bytes]:
        try:
            return await self._get_client().lrange(self._k(key), 0, -1)
        except RedisError as e:
            raise self._fail("list_range", e) from e

    async def health_check(self) -> bool:
        """
        Check Redis connection health.

        Returns:
            True if Redis is accessible, False otherwise
        """
        try:
            return bool(await self._get_client().ping())
        except Exception as e:
            log.warning("redis.health_check_failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
