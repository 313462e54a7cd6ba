from __future__ import annotations

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = structlog.get_logger(__name__)

EXPLANATION_KEY_PREFIX = "examprep:explanation"


def explanation_key(question_id: int) -> str:
    return f"{EXPLANATION_KEY_PREFIX}:{question_id}"


class ExplanationCache:
    """Cache-aside store for explanation text keyed by question id.

    Redis failures never reach the caller: reads degrade to a miss and writes
    are dropped, both logged.
    """

    def __init__(self, client: Redis | None, *, ttl_seconds: int) -> None:
        self._client = client
        self._ttl_seconds = ttl_seconds

    async def get(self, question_id: int) -> str | None:
        if self._client is None:
            return None
        try:
            value = await self._client.get(explanation_key(question_id))
        except RedisError as exc:
            logger.warning("explanation_cache_read_failed", question_id=question_id, error=str(exc))
            return None
        if value is None:
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else str(value)

    async def set(self, question_id: int, explanation: str) -> None:
        if self._client is None:
            return
        try:
            await self._client.set(explanation_key(question_id), explanation, ex=self._ttl_seconds)
        except RedisError as exc:
            logger.warning("explanation_cache_write_failed", question_id=question_id, error=str(exc))
