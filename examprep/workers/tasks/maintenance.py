from __future__ import annotations

from datetime import datetime, timedelta, timezone

import structlog
from celery.schedules import crontab

from examprep.billing.subscriptions import SubscriptionService
from examprep.core.config import get_settings
from examprep.db.repo.mock_exam_sessions_repo import MockExamSessionsRepo
from examprep.db.session import SessionLocal
from examprep.exams.service import MockExamService
from examprep.workers.asyncio_runner import run_async_job
from examprep.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)
STALE_MOCK_EXAM_BATCH_SIZE = 200
EXPIRED_PREMIUM_BATCH_SIZE = 500


async def run_expire_stale_mock_exams_async(*, batch_size: int = STALE_MOCK_EXAM_BATCH_SIZE) -> dict[str, int]:
    now_utc = datetime.now(timezone.utc)
    grace = timedelta(minutes=get_settings().mock_exam_expiry_grace_minutes)
    async with SessionLocal.begin() as session:
        exam_ids = await MockExamSessionsRepo.list_timed_out_ids_for_update(
            session,
            now_utc=now_utc,
            grace=grace,
            limit=batch_size,
        )
        abandoned = await MockExamService.abandon_timed_out(session, exam_ids=exam_ids, now_utc=now_utc)

    result = {"candidates": len(exam_ids), "abandoned": abandoned}
    logger.info("mock_exam_expiry_finished", **result)
    return result


async def run_deactivate_expired_premium_async(*, batch_size: int = EXPIRED_PREMIUM_BATCH_SIZE) -> dict[str, int]:
    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        result = await SubscriptionService.expire_lapsed(session, now_utc=now_utc, batch_size=batch_size)

    if result["users_deactivated"] > 0:
        logger.warning("premium_deactivated", **result)
    else:
        logger.info("premium_expiry_finished", **result)
    return result


@celery_app.task(name="examprep.workers.tasks.maintenance.run_expire_stale_mock_exams")
def run_expire_stale_mock_exams() -> dict[str, int]:
    return run_async_job(run_expire_stale_mock_exams_async(), job_name="expire_stale_mock_exams")


@celery_app.task(name="examprep.workers.tasks.maintenance.run_deactivate_expired_premium")
def run_deactivate_expired_premium() -> dict[str, int]:
    return run_async_job(run_deactivate_expired_premium_async(), job_name="deactivate_expired_premium")


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "expire-stale-mock-exams-every-5-minutes": {
            "task": "examprep.workers.tasks.maintenance.run_expire_stale_mock_exams",
            "schedule": 300.0,
            "options": {"queue": "q_normal"},
        },
        "deactivate-expired-premium-daily-0005-local": {
            "task": "examprep.workers.tasks.maintenance.run_deactivate_expired_premium",
            "schedule": crontab(hour=0, minute=5),
            "options": {"queue": "q_normal"},
        },
    }
)
