class ResearchError(Exception):
    """Base class for errors raised by the research services."""


class InvalidRequest(ResearchError):
    """Malformed or missing request fields.

    ``status_code`` is 400 for bad input and 401 when the caller's identity
    is missing.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class QuotaExceeded(ResearchError):
    def __init__(self, limit: int):
        self.limit = limit
        self.message = (
            f"You have reached your daily limit of {limit} requests. "
            "Please try again tomorrow."
        )
        super().__init__(self.message)


class NotFound(ResearchError):
    pass


class PipelineFailure(ResearchError):
    """Any failure inside a detached pipeline run."""


class RecordClosed(PipelineFailure):
    """A write targeted a record that is no longer running."""
