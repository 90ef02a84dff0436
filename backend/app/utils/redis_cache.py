import logging
import os
import random
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

import orjson
import redis

from app.core.config import settings
from .json import dumps, loads

_redis_client: Optional[redis.Redis] = None

DISTANCE_KEY_PREFIX = "dist:matrix"


class _NullRedis:
    """Stand-in client when REDIS_URL is unset or disabled.

    Every read misses and every write is dropped, so distance lookups simply
    go to the provider each time.
    """

    def get(self, key: str):
        return None

    def setex(self, key: str, expire: int, value: str):
        return None

    def delete(self, key: str):
        return 0

    def close(self):
        return None


def get_redis_client() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        url = (getattr(settings, "REDIS_URL", "") or "").strip()
        # Allow disabling via empty/none/disabled/false
        if not url or url.lower() in {"none", "disabled", "false", "0"}:
            _redis_client = _NullRedis()  # type: ignore[assignment]
            return _redis_client
        try:
            conn_to = float(os.getenv("REDIS_CONNECT_TIMEOUT", "0.5"))
        except ValueError:
            conn_to = 0.5
        try:
            read_to = float(os.getenv("REDIS_SOCKET_TIMEOUT", "0.5"))
        except ValueError:
            read_to = 0.5
        try:
            _redis_client = redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=conn_to,
                socket_timeout=read_to,
            )
        except (redis.exceptions.RedisError, ValueError) as exc:
            logging.warning("Redis disabled, could not create client: %s", exc)
            _redis_client = _NullRedis()  # type: ignore[assignment]
    return _redis_client


def _apply_jitter(expire: int) -> int:
    """Return a TTL with a small random jitter to prevent cache stampedes."""
    return expire + random.randint(0, max(1, expire // 10))


def _distance_key(origin: str, destination: str) -> str:
    return f"{DISTANCE_KEY_PREFIX}:{origin.strip().lower()}::{destination.strip().lower()}"


def get_cached_distance(origin: str, destination: str) -> Optional[Tuple[Decimal, Decimal]]:
    """Return a cached ``(distance_km, duration_mins)`` pair, or None."""
    client = get_redis_client()
    try:
        data = client.get(_distance_key(origin, destination))
    except redis.exceptions.RedisError as exc:
        logging.warning("Redis unavailable: %s", exc)
        return None
    if not data:
        return None
    try:
        payload = loads(data)
        return Decimal(payload["distance_km"]), Decimal(payload["duration_mins"])
    except (orjson.JSONDecodeError, KeyError, TypeError, InvalidOperation):
        logging.warning("Discarding malformed distance cache entry for %s -> %s", origin, destination)
        return None


def cache_distance(origin: str, destination: str, distance_km: Decimal, duration_mins: Decimal, expire: int) -> None:
    if expire <= 0:
        return None
    client = get_redis_client()
    payload = {"distance_km": distance_km, "duration_mins": duration_mins}
    try:
        client.setex(_distance_key(origin, destination), _apply_jitter(expire), dumps(payload))
    except redis.exceptions.RedisError as exc:
        logging.warning("Could not cache distance: %s", exc)
    return None


def close_redis_client() -> None:
    """Close the global Redis client if it exists."""
    global _redis_client
    if _redis_client is not None:
        try:
            _redis_client.close()
        except redis.exceptions.RedisError as exc:  # pragma: no cover - best effort
            logging.warning("Error closing Redis client: %s", exc)
        finally:
            _redis_client = None
