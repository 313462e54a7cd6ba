from examprep.workers.tasks.maintenance import run_deactivate_expired_premium, run_expire_stale_mock_exams

__all__ = [
    "run_deactivate_expired_premium",
    "run_expire_stale_mock_exams",
]
