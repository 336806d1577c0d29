from __future__ import annotations

"""Exception taxonomy for the assessment engine."""


class QuizError(Exception):
    """Base exception for hrquiz."""
    pass


class ConfigurationError(QuizError):
    """Raised when a session or application configuration is invalid."""
    pass


class NoQuestionsAvailableError(ConfigurationError):
    """Raised when the category filter leaves no candidate questions."""

    def __init__(self, category_filter: str, message: str | None = None):
        self.category_filter = category_filter
        self.message = message or f"No questions available for category '{category_filter}'"
        super().__init__(self.message)


class InvalidStateError(QuizError):
    """Raised when an operation is not allowed in the engine's current state."""

    def __init__(self, operation: str, state: str, message: str | None = None):
        self.operation = operation
        self.state = state
        self.message = message or f"Cannot {operation} while session is {state}"
        super().__init__(self.message)


class AlreadyCompletedError(InvalidStateError):
    """Raised when submit is called on a session that has already been scored."""

    def __init__(self, state: str = "completed"):
        super().__init__("submit", state, "Session has already been submitted")


class SessionNotCompletedError(InvalidStateError):
    """Raised when review data is requested before submission."""

    def __init__(self, state: str):
        super().__init__("review", state, "Review is only available after submission")


class OutOfRangeError(QuizError):
    """Raised when an option index, question id or navigation step is out of bounds."""
    pass


class PersistenceError(QuizError):
    """Raised by results logs and question banks when durable storage fails."""
    pass


class QuestionValidationError(QuizError):
    """Raised when a question record fails validation on its way into a bank."""
    pass
