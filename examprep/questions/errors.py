from __future__ import annotations

from examprep.core.errors import NotFoundError, ValidationError


class QuestionNotFoundError(NotFoundError):
    message = "Question not found"


class InvalidOptionError(ValidationError):
    message = "Selected option does not belong to the question"


class InsufficientQuestionsError(ValidationError):
    def __init__(self, *, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            f"Only {available} questions match the selected filters, {requested} requested",
            field_errors={"totalQuestions": f"must not exceed {available} for these filters"},
        )
