from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable
from typing import TypeVar

import structlog

from examprep.db.session import dispose_engine

T = TypeVar("T")
logger = structlog.get_logger(__name__)


async def _run_with_fresh_db_pool(awaitable: Awaitable[T], *, job_name: str) -> T:
    # each asyncio.run gets a new loop; pooled asyncpg connections are bound to the old one
    await dispose_engine()
    structlog.contextvars.bind_contextvars(job=job_name)
    started = time.monotonic()
    try:
        result = await awaitable
    except Exception:
        logger.exception("worker_job_failed", duration_ms=int((time.monotonic() - started) * 1000))
        raise
    finally:
        await dispose_engine()
        structlog.contextvars.unbind_contextvars("job")
    logger.info("worker_job_finished", duration_ms=int((time.monotonic() - started) * 1000))
    return result


def run_async_job(awaitable: Awaitable[T], *, job_name: str) -> T:
    return asyncio.run(_run_with_fresh_db_pool(awaitable, job_name=job_name))
