from typing import Optional  # Type hints for optional status codes / errors


# -----------------------------------
# Base class for all enrichment errors
# -----------------------------------
class EnrichmentError(Exception):
    pass


# Raised when the caller gives us nothing to enrich (no company name)
class InvalidCompanyError(EnrichmentError, ValueError):
    pass


# -----------------------------------
# LLM attempt failures (one per attempt)
# -----------------------------------
class LLMAttemptError(EnrichmentError):
    """A single LLM call attempt failed; the client may retry it."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code  # HTTP status for diagnostics, if any


class LLMRateLimitError(LLMAttemptError):
    """HTTP 429 from the chat-completions endpoint."""

    def __init__(self, message: str = "Rate limited by LLM endpoint"):
        super().__init__(message, status_code=429)


class LLMResponseError(LLMAttemptError):
    """Non-2xx status, transport failure, empty content or unparsable JSON."""


# -----------------------------------
# Raised once every attempt has been used up
# -----------------------------------
class LLMUnavailableError(EnrichmentError):
    def __init__(self, last_error: Optional[Exception], attempts: int):
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(f"LLM unavailable after {attempts} attempts: {last_error}")
