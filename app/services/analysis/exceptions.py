"""Transcript analysis exceptions."""


class AnalysisError(Exception):
    """Base exception for analysis errors."""

    pass


class LLMBackendError(AnalysisError):
    """Raised when the LLM provider call fails."""

    pass


class LLMResponseError(AnalysisError):
    """Raised when the LLM reply is empty or not valid JSON."""

    pass
