"""Optional Redis-backed record of consumed reset tokens.

Reset tokens are stateless and would otherwise stay usable until they expire.
When `REDIS_URL` is configured each token can change a password only once.
"""

from typing import Optional

from redis.asyncio import Redis

from voyager.core.config import settings
from voyager.core.tokens import signature_of

_redis_client: Optional[Redis] = None


def get_redis_client() -> Optional[Redis]:
    """Return the shared Redis client, or None when Redis is not configured."""
    global _redis_client
    if _redis_client is None and settings.REDIS_URL:
        _redis_client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_client


async def close_redis_client() -> None:
    """Close the shared Redis client; invoked during application shutdown."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


def _ledger_key(reset_token: str) -> str:
    return f"reset-used:{signature_of(reset_token)}"


class ResetTokenLedger:
    def __init__(self, redis_client: Redis):
        self.redis = redis_client

    async def consume(self, reset_token: str, ttl: int) -> bool:
        """Mark the token as used; False means it had already been consumed."""
        created = await self.redis.set(_ledger_key(reset_token), "1", nx=True, ex=max(ttl, 1))
        return bool(created)

    async def release(self, reset_token: str) -> None:
        """Forget a consumption, used when the password update itself failed."""
        await self.redis.delete(_ledger_key(reset_token))
