from examprep.db.repo.daily_usage_repo import DailyUsageRepo
from examprep.db.repo.mock_exam_sessions_repo import MockExamSessionsRepo
from examprep.db.repo.payment_verifications_repo import PaymentVerificationsRepo
from examprep.db.repo.questions_repo import QuestionFilter, QuestionsRepo
from examprep.db.repo.season_pass_codes_repo import SeasonPassCodesRepo
from examprep.db.repo.streaks_repo import StreaksRepo
from examprep.db.repo.subscriptions_repo import SubscriptionsRepo
from examprep.db.repo.users_repo import UsersRepo

__all__ = [
    "DailyUsageRepo",
    "MockExamSessionsRepo",
    "PaymentVerificationsRepo",
    "QuestionFilter",
    "QuestionsRepo",
    "SeasonPassCodesRepo",
    "StreaksRepo",
    "SubscriptionsRepo",
    "UsersRepo",
]
