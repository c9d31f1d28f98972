import json
import hashlib
from typing import Any, Dict, List, Optional

import redis

from resplan.config.settings import get_settings


class FindingsCache:
    """Memoizes engine output in Redis, keyed by a hash of the input snapshot."""

    def __init__(self, redis_url: Optional[str] = None, ttl_seconds: Optional[int] = None):
        settings = get_settings()
        self.redis_client = redis.from_url(redis_url or settings.redis_url, decode_responses=True)
        self.ttl_seconds = ttl_seconds or settings.cache_ttl_seconds

    def get(self, snapshot_hash: str) -> Optional[Dict[str, Any]]:
        """Retrieve cached findings by snapshot hash."""
        cached = self.redis_client.get(f"findings:{snapshot_hash}")
        if cached:
            return json.loads(cached)
        return None

    def set(self, snapshot_hash: str, findings: Dict[str, Any]) -> None:
        self.redis_client.setex(
            f"findings:{snapshot_hash}",
            self.ttl_seconds,
            json.dumps(findings, default=str)
        )

    @staticmethod
    def hash_snapshot(tasks: List[Dict], resources: List[Dict], candidate: Optional[Dict] = None) -> str:
        """Generate hash from task/resource/candidate content."""
        data = json.dumps(
            {"tasks": tasks, "resources": resources, "candidate": candidate},
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(data.encode()).hexdigest()[:16]

    def health_check(self) -> bool:
        """Check Redis connection."""
        try:
            self.redis_client.ping()
            return True
        except redis.RedisError:
            return False
