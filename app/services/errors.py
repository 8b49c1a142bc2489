"""Failure taxonomy shared by the call analysis pipeline."""

from __future__ import annotations


class AnalysisError(RuntimeError):
    """Base class for every failure surfaced by the analysis pipeline."""

    kind: str = "analysis_error"
    status_code: int = 500
    retryable: bool = False


class InvalidInput(AnalysisError):
    """Caller supplied data that violates the analysis preconditions."""

    kind = "invalid_input"
    status_code = 400


class BackendUnavailable(AnalysisError):
    """Transport, auth or timeout failure while talking to the reasoning backend."""

    kind = "backend_unavailable"
    retryable = True


class MalformedResponse(AnalysisError):
    """The backend replied but its output could not be recovered."""

    kind = "malformed_response"

    def __init__(self, message: str, *, raw_response: str | None = None) -> None:
        super().__init__(message)
        self.raw_response = raw_response


__all__ = ["AnalysisError", "InvalidInput", "BackendUnavailable", "MalformedResponse"]
