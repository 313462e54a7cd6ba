from celery import Celery
from celery.signals import setup_logging

from examprep.core.config import get_settings
from examprep.core.logging import configure_logging

settings = get_settings()

celery_app = Celery(
    "examprep",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "examprep.workers.tasks.maintenance",
    ],
)

celery_app.conf.update(
    task_default_queue="q_normal",
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone=settings.usage_timezone,
    enable_utc=True,
)


@celery_app.task(name="examprep.workers.celery_app.ping")
def ping() -> str:
    return "pong"


@setup_logging.connect
def configure_worker_logging(**_kwargs) -> None:
    configure_logging(settings.log_level, app_env=settings.app_env)
