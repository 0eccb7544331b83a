"""
Error taxonomy for the interview engine.

UpstreamError covers the model service. Transient failures are retried by
GeminiService; once the retry budget is spent RetriesExhaustedError is raised
instead, so overload and hard failures stay distinguishable in logs.
"""

from typing import Optional


class InterviewCoachError(Exception):
    """Base class for all errors raised by the service."""


class UpstreamError(InterviewCoachError):
    """The generative model call failed."""


class TransientUpstreamError(UpstreamError):
    """Overload / internal error on the model side; worth retrying."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NonRetriableUpstreamError(UpstreamError):
    """Client-side or content failure; retrying will not help."""


class RetriesExhaustedError(UpstreamError):
    def __init__(self, attempts: int, last_error: Optional[BaseException] = None):
        super().__init__(f"Model call failed after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class MalformedOutputError(InterviewCoachError):
    """Model output was not valid JSON, or had the wrong shape."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class OrchestrationError(InterviewCoachError):
    """Wraps the first failing sub-step of a turn or summary."""

    def __init__(self, step: str, cause: BaseException):
        super().__init__(f"Step '{step}' failed: {cause}")
        self.step = step
        self.cause = cause
