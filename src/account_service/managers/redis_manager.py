"""
# Redis Manager

Owns the `redis.asyncio` client used by the event bus. The client is created lazily on the
first `get_redis()` call from `settings.REDIS_URL` and shared afterwards.

```python
from account_service.managers.redis_manager import redis_manager

redis = await redis_manager.get_redis()
await redis.publish("account.events.children.save", payload)
```
"""

from typing import Optional

import redis.asyncio as aioredis

from account_service.config import settings
from account_service.managers.logging_manager import get_logger

logger = get_logger(prefix="[REDIS]")


class RedisManager:
    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.REDIS_URL
        self._client: Optional[aioredis.Redis] = None

    async def get_redis(self) -> aioredis.Redis:
        """Return the shared client, creating it and pinging the server on first use."""
        if self._client is None:
            client = aioredis.from_url(self.url, decode_responses=True)
            await client.ping()
            self._client = client
            logger.info("Connected to Redis at %s", self.url.split("@")[-1])
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Redis connection closed")


redis_manager = RedisManager()
