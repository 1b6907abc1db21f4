"""Exceptions raised by the test engine and the admin surfaces."""


class DiagnosticError(Exception):
    """Base class for every error this package raises on purpose."""


class PoolUnavailable(DiagnosticError):
    """The question pool or answer history could not be read."""


class PoolTooSmall(DiagnosticError):
    def __init__(self, available: int, required: int):
        super().__init__(
            f"Only {available} question(s) available, at least {required} required"
        )
        self.available = available
        self.required = required


class IncompleteSubmission(DiagnosticError):
    def __init__(self, missing: list[int]):
        super().__init__(f"Unanswered question(s) at position(s): {missing}")
        self.missing = missing


class EmptyQuestionSet(DiagnosticError, ValueError):
    """Scoring was asked to handle a test with zero questions."""


class PersistenceFailure(DiagnosticError):
    """One write of a test outcome failed."""

    def __init__(self, target: str, cause: Exception):
        super().__init__(f"Failed to write {target}: {cause}")
        self.target = target
        self.cause = cause


class QuestionValidationError(DiagnosticError, ValueError):
    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class UnknownUser(DiagnosticError, LookupError):
    pass


class DuplicateUser(DiagnosticError):
    pass
