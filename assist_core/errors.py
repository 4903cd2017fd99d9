"""
Assistant Error Taxonomy
========================

Categories of failure a generation action can end in, and the user-facing
message for each. Everything here is recovered at the action boundary and
turned into an empty suggestion list plus a message; nothing propagates to
the host.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from assist_core.tools_api import CompletionResult, FailureKind


class ErrorCategory(str, Enum):
    """Failure categories surfaced to the operator."""

    EXTRACTION_MISS = "extraction_miss"
    CONFIGURATION_MISSING = "configuration_missing"
    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    MALFORMED_UPSTREAM_REQUEST = "malformed_upstream_request"
    UPSTREAM_FAILURE = "upstream_failure"
    NETWORK_FAILURE = "network_failure"
    PARSE_FAILURE = "parse_failure"
    UNEXPECTED = "unexpected"


MISSING_API_KEY = "API key not configured. Please set your Claude API key in the extension settings."
LOCAL_RATE_LIMIT = "Rate limit reached. Please wait {seconds} seconds before trying again."
UNAUTHORIZED_MESSAGE = "Invalid API key. Please check your Claude API key in the extension settings."
UPSTREAM_RATE_LIMIT = "Claude API rate limit reached. Please wait a moment and try again."
MALFORMED_REQUEST_MESSAGE = "Invalid request. The conversation may be too long or contain invalid content."
NETWORK_MESSAGE = "Network error. Please check your internet connection."
PARSE_FAILURE_MESSAGE = "Could not generate suggestions. Please try again."
OUTREACH_PARSE_FAILURE_MESSAGE = "Could not generate outreach suggestions. Please try again."
UNEXPECTED_MESSAGE = "An unexpected error occurred"

NO_MESSAGES = "No messages found in the conversation. Open a chat thread with messages first."
NO_MESSAGES_USE_OUTREACH = "No messages found in the conversation. Use Outreach to start a new conversation."
NO_RECIPIENT = "Could not identify the recipient. Please ensure you have a conversation open."
NO_POST_CONTENT = "Could not extract post content. Please try again."


class AssistError(Exception):
    """A categorized failure with a user-facing message."""

    def __init__(self, category: ErrorCategory, message: str):
        super().__init__(message)
        self.category = category
        self.message = message

    def __repr__(self) -> str:
        return f"AssistError({self.category.value!r}, {self.message!r})"


def configuration_missing() -> AssistError:
    return AssistError(ErrorCategory.CONFIGURATION_MISSING, MISSING_API_KEY)


def local_rate_limited(wait_seconds: int) -> AssistError:
    return AssistError(ErrorCategory.RATE_LIMITED, LOCAL_RATE_LIMIT.format(seconds=wait_seconds))


def failure_to_error(result: CompletionResult) -> AssistError:
    """
    Map a failed completion result to the error taxonomy.

    Args:
        result: CompletionResult with ok=False

    Returns:
        AssistError with the category and message for the failure kind
    """
    kind: Optional[FailureKind] = result.failure

    if kind == FailureKind.UNAUTHORIZED:
        return AssistError(ErrorCategory.UNAUTHORIZED, UNAUTHORIZED_MESSAGE)
    if kind == FailureKind.RATE_LIMITED:
        return AssistError(ErrorCategory.RATE_LIMITED, UPSTREAM_RATE_LIMIT)
    if kind == FailureKind.MALFORMED_REQUEST:
        return AssistError(ErrorCategory.MALFORMED_UPSTREAM_REQUEST, MALFORMED_REQUEST_MESSAGE)
    if kind == FailureKind.NETWORK:
        return AssistError(ErrorCategory.NETWORK_FAILURE, NETWORK_MESSAGE)

    message = result.error or f"API error: {result.status_code if result.status_code is not None else 'unknown'}"
    return AssistError(ErrorCategory.UPSTREAM_FAILURE, message)
