from __future__ import annotations

from examprep.core.errors import ConflictError, NotFoundError, ValidationError


class ExamNotFoundError(NotFoundError):
    message = "Mock exam not found"


class ExamNotInProgressError(ConflictError):
    message = "Mock exam is no longer in progress"


class ExamNotCompletedError(ConflictError):
    message = "Mock exam has not been submitted"


class ExamAlreadyInProgressError(ConflictError):
    message = "Finish or abandon your current mock exam before starting a new one"


class QuestionNotInExamError(ValidationError):
    message = "Question is not part of this mock exam"


class InvalidExamOptionsError(ValidationError):
    pass
