from examprep.db.models.daily_usage import DailyExplanationView, DailyPracticeUsage
from examprep.db.models.mock_exam_sessions import MockExamSession
from examprep.db.models.payment_verifications import PaymentVerification
from examprep.db.models.questions import Question
from examprep.db.models.season_pass_codes import SeasonPassCode
from examprep.db.models.subscriptions import Subscription
from examprep.db.models.user_streaks import UserStreak
from examprep.db.models.users import User

__all__ = [
    "DailyExplanationView",
    "DailyPracticeUsage",
    "MockExamSession",
    "PaymentVerification",
    "Question",
    "SeasonPassCode",
    "Subscription",
    "User",
    "UserStreak",
]
