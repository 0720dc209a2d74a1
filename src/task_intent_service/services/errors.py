"""Error taxonomy for the task-intent pipeline."""


class PipelineError(Exception):
    """Base class for failures that end a pipeline attempt."""

    retryable = True


class EmptyInputError(PipelineError):
    """Submitted text was blank."""

    retryable = False

    def __init__(self, message: str = "Please enter some text"):
        super().__init__(message)


class NotAuthenticatedError(PipelineError):
    """No owning user was supplied for the request."""

    retryable = False

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class ClassificationError(PipelineError):
    """The intent classification capability failed."""


class ExtractionError(PipelineError):
    """The field extraction capability failed."""


class UnknownResponseError(ExtractionError):
    """A capability answered with a payload of an unexpected shape."""

    def __init__(self, message: str = "Unknown response type"):
        super().__init__(message)


class SearchError(PipelineError):
    """Full-text search against the task store failed."""


class PersistenceError(PipelineError):
    """The task store rejected or failed an insert."""


class RetryUnavailableError(PipelineError):
    """Retry was requested but the budget is spent or nothing failed."""

    retryable = False


class StoreError(Exception):
    """Raised by task store clients on transport or API errors."""


def user_facing_message(error: BaseException | str, retry_count: int, max_retries: int = 3) -> str:
    """Turn a pipeline failure into a short message for the user."""
    text = str(error)
    if "timeout" in text.lower():
        return "Request timed out. The AI service might be busy. Please try again."
    if "authentication" in text.lower() or "not authenticated" in text.lower():
        return "Authentication failed. Please refresh and try again."
    if retry_count < max_retries:
        return f"Processing failed. Retry {retry_count}/{max_retries} available."
    return "Failed to process your request. Please rephrase it and submit again."
