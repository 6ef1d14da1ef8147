"""Redis-backed cache-aside store for serialized transcripts.

Entries are keyed ``transcript:<resource id>`` and expire after 24 hours
by default. An unreachable Redis is reported as a miss on read and as a
skipped write, never as a request failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from redis.exceptions import RedisError

from transcript_scraper.exceptions import CacheUnavailableError

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from redis.asyncio import Redis

    from transcript_scraper.config import CacheSettings

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_DEFAULT_KEY_PREFIX = "transcript:"
_DEFAULT_TTL_SECONDS = 86400  # 24 hours


def cache_key(resource_id: str, prefix: str = _DEFAULT_KEY_PREFIX) -> str:
    """Return the cache key for ``resource_id``."""
    return f"{prefix}{resource_id}"


class TranscriptCache:
    """Cache-aside wrapper around an async Redis client.

    The client's connection lifecycle belongs to the caller; this class
    never opens or closes it.

    Attributes:
        ttl_seconds: Time-to-live applied to every stored transcript.
        key_prefix: Prefix prepended to resource identifiers.
    """

    def __init__(
        self,
        client: Redis,
        ttl_seconds: int = _DEFAULT_TTL_SECONDS,
        key_prefix: str = _DEFAULT_KEY_PREFIX,
    ) -> None:
        self._client = client
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    @classmethod
    def from_settings(cls, client: Redis, settings: CacheSettings) -> TranscriptCache:
        return cls(client, ttl_seconds=settings.ttl_seconds, key_prefix=settings.key_prefix)

    def key(self, resource_id: str) -> str:
        return cache_key(resource_id, self.key_prefix)

    async def get(self, resource_id: str) -> str | None:
        """Return the cached transcript, or ``None`` on miss or outage."""
        key = self.key(resource_id)
        try:
            value = await self._guarded(self._client.get(key))
        except CacheUnavailableError as exc:
            logger.warning("transcript_cache_unavailable", op="get", error=str(exc))
            return None

        if value is None:
            logger.debug("transcript_cache_miss", key=key)
            return None

        if isinstance(value, bytes):
            try:
                value = value.decode("utf-8")
            except UnicodeDecodeError as exc:
                logger.warning("transcript_cache_undecodable", key=key, error=str(exc))
                return None
        logger.debug("transcript_cache_hit", key=key)
        return value  # type: ignore[no-any-return]

    async def put(self, resource_id: str, transcript: str) -> bool:
        """Store ``transcript`` with the configured TTL.

        Empty transcripts are never stored. Returns ``True`` if written.
        """
        if not transcript.strip():
            return False

        key = self.key(resource_id)
        try:
            await self._guarded(self._client.set(key, transcript, ex=self.ttl_seconds))
        except CacheUnavailableError as exc:
            logger.warning("transcript_cache_unavailable", op="set", error=str(exc))
            return False

        logger.debug("transcript_cache_set", key=key, ttl_seconds=self.ttl_seconds)
        return True

    async def invalidate(self, resource_id: str) -> bool:
        """Delete the cached transcript; ``True`` if an entry was removed."""
        key = self.key(resource_id)
        try:
            removed = await self._guarded(self._client.delete(key))
        except CacheUnavailableError as exc:
            logger.warning("transcript_cache_unavailable", op="delete", error=str(exc))
            return False

        logger.info("transcript_cache_invalidated", key=key, removed=bool(removed))
        return bool(removed)

    async def ping(self) -> bool:
        try:
            await self._guarded(self._client.ping())
        except CacheUnavailableError:
            return False
        return True

    @staticmethod
    async def _guarded(call: Awaitable[Any]) -> Any:
        try:
            return await call
        except (RedisError, OSError, UnicodeDecodeError) as exc:
            raise CacheUnavailableError(str(exc)) from exc
