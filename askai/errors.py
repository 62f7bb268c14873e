"""
Error taxonomy. Every failure in the pipeline is one of these; main.py
catches AskAIError once, prints format_error(exc) to stderr and exits 1.
"""

from __future__ import annotations

from typing import Optional


class AskAIError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(AskAIError):
    """A required value is missing or options were combined illegally."""


class ValidationError(AskAIError):
    """Model name not allowed, or --custom-model used inconsistently."""


class CredentialError(AskAIError):
    NO_KEY = "no-key"
    HELPER_MISSING = "helper-missing"
    HELPER_UNAUTHENTICATED = "helper-unauthenticated"

    def __init__(self, message: str, reason: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.reason = reason
        self.hint = hint


class TransportError(AskAIError):
    """Network-level failure talking to the API or the credential helper."""


class ApiError(AskAIError):
    """Non-2xx response. The raw body is shown to the user verbatim."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(body)
        self.status = status
        self.body = body


class EmptyResponseError(AskAIError):
    pass


class OperationCancelledError(AskAIError):
    def __init__(self, message: str = "Operation cancelled.") -> None:
        super().__init__(message)


def format_error(exc: AskAIError) -> str:
    if isinstance(exc, ApiError):
        return exc.body
    text = f"Error: {exc.message}"
    if isinstance(exc, CredentialError) and exc.hint:
        text += f"\n{exc.hint}"
    return text
