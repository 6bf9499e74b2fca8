"""Custom exceptions for content extraction."""


class ExtractionError(Exception):
    """Base exception for extraction errors."""

    pass


class FetchError(ExtractionError):
    """Network or HTTP failure while retrieving a document.

    Terminal for one extraction call: the orchestrator logs it and returns None.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ContentTooLargeError(FetchError):
    """Downloaded document exceeds the configured size limit."""

    pass


class BackendParseError(ExtractionError):
    """A single extraction backend failed (malformed structure, bad encoding).

    Recovered locally: the backend is treated as having produced no text and
    the next backend is attempted.
    """

    def __init__(self, backend: str, message: str) -> None:
        super().__init__(f"{backend}: {message}")
        self.backend = backend
