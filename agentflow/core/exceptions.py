"""Error taxonomy and run-time error classification.

Registration-time errors (duplicate agent or session ids) are raised
synchronously to the caller. Everything that goes wrong while a run is in
flight is classified here and converted into a single ``error`` event with
a sanitized, user-safe message.
"""

from __future__ import annotations

import asyncio
import json
from enum import StrEnum

import openai
from langgraph.errors import GraphRecursionError


class ErrorKind(StrEnum):
    """Classification of a failed run, carried on ``error`` events."""

    CONFIGURATION = "configuration"
    ABORT = "abort"
    NETWORK = "network"
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"


class AgentflowError(Exception):
    """Base class for all agentflow errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN


class ConfigurationError(AgentflowError):
    """Missing or placeholder credentials; the provider is never called."""

    kind = ErrorKind.CONFIGURATION


class AbortError(AgentflowError):
    """A run was cancelled. Never surfaced to the user."""

    kind = ErrorKind.ABORT


class ProviderError(AgentflowError):
    """Failure reported by the model backend."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.UNKNOWN):
        super().__init__(message)
        self.kind = kind


class DuplicateKeyError(AgentflowError):
    """An agent id, session id or active run id is already registered."""


class RunNotFoundError(AgentflowError):
    """No active run with the given id."""


class AgentNotFoundError(AgentflowError):
    """No agent registered under the given name."""


class SessionNotFoundError(AgentflowError):
    """No session with the given id."""


class SessionBusyError(AgentflowError):
    """The session already hosts an in-flight run."""


_ABORT_PATTERNS: tuple[str, ...] = ("abort", "cancel")
_AUTH_PATTERNS: tuple[str, ...] = (
    "401",
    "unauthorized",
    "invalid api key",
    "incorrect api key",
    "authentication",
)
_RATE_LIMIT_PATTERNS: tuple[str, ...] = ("429", "rate limit", "too many requests")
_NETWORK_PATTERNS: tuple[str, ...] = (
    "connection",
    "timed out",
    "timeout",
    "network",
    "could not resolve host",
    "temporarily unavailable",
)
_MALFORMED_PATTERNS: tuple[str, ...] = ("json", "decode", "malformed", "unexpected response")

USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.CONFIGURATION: (
        "No API key is configured for this provider. Please add your API key in Settings."
    ),
    ErrorKind.ABORT: "Cancelled",
    ErrorKind.NETWORK: "Could not reach the model provider. Please check your connection and try again.",
    ErrorKind.AUTH: "Authentication failed. Please check your API key in Settings.",
    ErrorKind.RATE_LIMIT: "Rate limit exceeded. Please wait a moment and try again.",
    ErrorKind.MALFORMED_RESPONSE: "The model provider returned an unexpected response.",
    ErrorKind.UNKNOWN: "The model request failed. Please try again.",
}


def _matches(text: str, patterns: tuple[str, ...]) -> bool:
    return any(pattern in text for pattern in patterns)


def classify_error(error: BaseException) -> ErrorKind:
    """Map an exception raised during a run to an ``ErrorKind``.

    SDK exception types are checked first, then the message text.
    """
    if isinstance(error, AgentflowError):
        return error.kind
    if isinstance(error, asyncio.CancelledError):
        return ErrorKind.ABORT
    if isinstance(error, GraphRecursionError):
        return ErrorKind.UNKNOWN

    if isinstance(error, openai.AuthenticationError | openai.PermissionDeniedError):
        return ErrorKind.AUTH
    if isinstance(error, openai.RateLimitError):
        return ErrorKind.RATE_LIMIT
    if isinstance(error, openai.APIConnectionError):
        return ErrorKind.NETWORK
    if isinstance(error, openai.APIResponseValidationError):
        return ErrorKind.MALFORMED_RESPONSE
    if isinstance(error, ConnectionError | TimeoutError):
        return ErrorKind.NETWORK
    if isinstance(error, json.JSONDecodeError):
        return ErrorKind.MALFORMED_RESPONSE

    message = str(error).lower()
    name = type(error).__name__.lower()

    if name == "aborterror" or _matches(message, _ABORT_PATTERNS):
        return ErrorKind.ABORT
    if _matches(message, _AUTH_PATTERNS):
        return ErrorKind.AUTH
    if _matches(message, _RATE_LIMIT_PATTERNS):
        return ErrorKind.RATE_LIMIT
    if _matches(message, _NETWORK_PATTERNS):
        return ErrorKind.NETWORK
    if _matches(message, _MALFORMED_PATTERNS):
        return ErrorKind.MALFORMED_RESPONSE
    return ErrorKind.UNKNOWN


def to_user_message(kind: ErrorKind) -> str:
    """Return the sanitized, user-facing text for an error kind."""
    return USER_MESSAGES.get(kind, USER_MESSAGES[ErrorKind.UNKNOWN])
