"""
Caching of extracted register entries, keyed by calendar date.
"""

import json
from datetime import datetime, date, timezone
from typing import List, Optional
import redis
import structlog

from .config import settings
from .models import RegisterEntry

logger = structlog.get_logger(__name__)


class RegisterCache:
    """Redis cache for one extraction result per fetch date."""

    def __init__(self, redis_client: redis.Redis, ttl_seconds: Optional[int] = None):
        self.redis = redis_client
        self.entries_ttl = ttl_seconds or settings.cache_ttl_seconds

        # Cache keys
        self.entries_key = "fmcsa:entries:{fetch_date}"

    @classmethod
    def from_settings(cls) -> "RegisterCache":
        client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password,
        )
        return cls(client)

    def _key(self, fetch_date: date) -> str:
        return self.entries_key.format(fetch_date=fetch_date.isoformat())

    def cache_entries(self, fetch_date: date, entries: List[RegisterEntry]) -> bool:
        """Cache the entries extracted for a date."""
        try:
            payload = {
                "cached_at": datetime.now(timezone.utc).isoformat(),
                "entries": [entry.model_dump(mode="json") for entry in entries],
            }
            self.redis.setex(self._key(fetch_date), self.entries_ttl, json.dumps(payload))
            return True
        except redis.RedisError as e:
            logger.error("Failed to cache entries", fetch_date=str(fetch_date), error=str(e))
            return False

    def get_cached_entries(self, fetch_date: date) -> Optional[List[RegisterEntry]]:
        """Retrieve cached entries for a date, or None on a miss."""
        try:
            data = self.redis.get(self._key(fetch_date))
            if not data:
                return None
            payload = json.loads(data)
            return [RegisterEntry(**item) for item in payload.get("entries", [])]
        except (redis.RedisError, ValueError) as e:
            logger.error("Failed to read cached entries", fetch_date=str(fetch_date), error=str(e))
            return None

    def invalidate(self, fetch_date: date) -> bool:
        """Drop the cached entries for a date."""
        try:
            return bool(self.redis.delete(self._key(fetch_date)))
        except redis.RedisError as e:
            logger.error("Failed to invalidate cache", fetch_date=str(fetch_date), error=str(e))
            return False

    def health_check(self) -> bool:
        try:
            return bool(self.redis.ping())
        except redis.RedisError as e:
            logger.error("Redis health check failed", error=str(e))
            return False
