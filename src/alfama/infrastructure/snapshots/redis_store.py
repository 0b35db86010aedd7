from __future__ import annotations

import logging
import os
from functools import lru_cache

import redis

from alfama.application.ports.snapshots import PersistenceError, SnapshotStore

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def _connect(redis_url: str, timeout_seconds: float) -> redis.Redis:
    return redis.Redis.from_url(
        redis_url,
        socket_connect_timeout=timeout_seconds,
        socket_timeout=timeout_seconds,
        decode_responses=True,
    )


def reset_connections() -> None:
    _connect.cache_clear()


class RedisSnapshotStore(SnapshotStore):
    """Each snapshot key is one redis string holding the JSON array.

    The client is resolved lazily from ``REDIS_URL`` so that a missing or
    unreachable server surfaces as :class:`PersistenceError` at first use
    rather than at construction.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        timeout_seconds: float = 1.0,
        client: redis.Redis | None = None,
    ) -> None:
        self._redis_url = redis_url
        self._timeout_seconds = timeout_seconds
        self._client = client

    def _redis(self) -> redis.Redis:
        if self._client is None:
            url = self._redis_url or os.getenv("REDIS_URL")
            if not url:
                raise PersistenceError("REDIS_URL is not set")
            self._client = _connect(url, self._timeout_seconds)
        return self._client

    def load(self, key: str) -> str | None:
        try:
            value = self._redis().get(key)
        except redis.RedisError as exc:
            raise PersistenceError(f"failed to read snapshot {key}") from exc
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def save(self, key: str, payload: str) -> None:
        try:
            self._redis().set(name=key, value=payload)
        except redis.RedisError as exc:
            raise PersistenceError(f"failed to write snapshot {key}") from exc

    def ping(self) -> bool:
        try:
            return bool(self._redis().ping())
        except (redis.RedisError, PersistenceError):
            logger.warning("snapshot_backend_unreachable", extra={"backend": "redis"})
            return False
