"""Exception taxonomy for the quiz-attempt engine.

Routes translate these into JSON error bodies (see ``main.py``); inside the
engine they are raised and never caught.
"""


class QuizEngineError(Exception):
    """Base class for every error raised by the attempt engine."""

    code = "quiz_engine_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(QuizEngineError):
    """Malformed input such as an out-of-range option index."""

    code = "validation_error"


class InvalidStateError(QuizEngineError):
    """Operation attempted outside the state where it is legal."""

    code = "invalid_state"


class UnknownAttemptError(InvalidStateError):
    """No session is registered under the given attempt id."""

    code = "unknown_attempt"

    def __init__(self, attempt_id: str):
        super().__init__(f"Unknown attempt {attempt_id}")
        self.attempt_id = attempt_id


class AlreadyStartedError(QuizEngineError):
    """A session (or a user's attempt at a quiz) has already been started."""

    code = "already_started"

    def __init__(self, message: str, attempt_id: str | None = None):
        super().__init__(message)
        self.attempt_id = attempt_id
