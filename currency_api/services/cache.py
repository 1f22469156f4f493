"""External snapshot cache used for write-through durability and health checks."""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod

import redis
from redis.exceptions import RedisError

from currency_api.services.snapshot import RateSnapshot, SnapshotValidationError

logger = logging.getLogger(__name__)

CACHE_EXT_KEY = "rates_cache"
RATES_KEY = "exchange:rates:latest"
DATE_KEY = "exchange:rates:date"


class CacheError(RuntimeError):
    """Raised when the external cache cannot serve a read or write."""


class SnapshotCache(ABC):
    """Interface for the external snapshot cache."""

    name: str

    @abstractmethod
    def write(self, snapshot: RateSnapshot) -> None:
        """Store ``snapshot`` as the latest published rates."""

    @abstractmethod
    def read(self) -> RateSnapshot | None:
        """Return the cached snapshot, or ``None`` on a miss."""

    @abstractmethod
    def ping(self) -> bool:
        """Return whether the cache is reachable. Never raises."""


def _encode(snapshot: RateSnapshot) -> str:
    return json.dumps(snapshot.to_payload(), separators=(",", ":"))


def _decode(raw: str) -> RateSnapshot:
    try:
        return RateSnapshot.from_payload(json.loads(raw))
    except (ValueError, SnapshotValidationError) as exc:
        raise CacheError(f"Failed to deserialize cached rates: {exc}") from exc


class RedisSnapshotCache(SnapshotCache):
    """Redis-backed cache storing the snapshot as JSON with decimal strings."""

    name = "redis"

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, *, timeout: float = 5.0) -> RedisSnapshotCache:
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        return cls(client)

    def write(self, snapshot: RateSnapshot) -> None:
        payload = _encode(snapshot)
        try:
            pipe = self._client.pipeline(transaction=True)
            pipe.set(RATES_KEY, payload)
            pipe.set(DATE_KEY, snapshot.date.isoformat())
            pipe.execute()
        except RedisError as exc:
            raise CacheError(f"Redis error: {exc}") from exc
        logger.info("Stored exchange rates for %s in Redis", snapshot.date.isoformat())

    def read(self) -> RateSnapshot | None:
        try:
            raw = self._client.get(RATES_KEY)
        except RedisError as exc:
            raise CacheError(f"Redis error: {exc}") from exc
        if raw is None:
            logger.warning("No exchange rates found in Redis")
            return None
        snapshot = _decode(raw)
        logger.debug("Retrieved exchange rates for %s from Redis", snapshot.date.isoformat())
        return snapshot

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except RedisError as exc:
            logger.warning("Redis ping failed: %s", exc)
            return False


class InMemorySnapshotCache(SnapshotCache):
    """Process-local cache for development and tests."""

    name = "memory"

    def __init__(self) -> None:
        self._payload: str | None = None
        self._lock = threading.Lock()

    def write(self, snapshot: RateSnapshot) -> None:
        payload = _encode(snapshot)
        with self._lock:
            self._payload = payload

    def read(self) -> RateSnapshot | None:
        with self._lock:
            raw = self._payload
        if raw is None:
            return None
        return _decode(raw)

    def ping(self) -> bool:
        return True


def create_cache(config) -> SnapshotCache:
    """Build the cache described by ``REDIS_URL``; blank means in-memory."""

    url = (config.get("REDIS_URL") or "").strip()
    if not url:
        logger.info("REDIS_URL not set; using in-memory snapshot cache.")
        return InMemorySnapshotCache()
    timeout = float(config.get("REDIS_TIMEOUT_SECONDS", 5))
    logger.info("Using Redis snapshot cache (timeout %.1fs)", timeout)
    return RedisSnapshotCache.from_url(url, timeout=timeout)


def init_cache(app) -> SnapshotCache:
    """Attach the configured cache to the Flask app."""

    cache = app.extensions.get(CACHE_EXT_KEY)
    if cache is None:
        cache = create_cache(app.config)
        app.extensions[CACHE_EXT_KEY] = cache
    return cache
