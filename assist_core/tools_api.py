"""
Abstract Tool Interfaces for the Assistant Core
===============================================

Interfaces the core uses to reach its external collaborators. The core
never imports concrete implementations or performs I/O itself; the host
runtime builds concrete tools (see host_tools.factory) and injects them.

Two capabilities are consumed:
- a completion service: invoke(system, prompt, options) -> CompletionResult
- a configuration store: get(key) / set(key, value)

Completion failures are values, not exceptions: the adapter returns a
discriminated CompletionResult and the core derives its error taxonomy
from `failure` mechanically (see assist_core.errors).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol


# =============================================================================
# Completion Service Interface
# =============================================================================

class FailureKind(str, Enum):
    """Tagged failure reported by the completion-service adapter."""

    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    MALFORMED_REQUEST = "malformed_request"
    HTTP_ERROR = "http_error"
    NETWORK = "network"


@dataclass
class CompletionOptions:
    """Per-call options for the completion service."""
    max_output_tokens: int = 1024
    reasoning_budget: Optional[int] = None  # extended thinking budget, tokens
    web_search_max_uses: Optional[int] = None  # enables the web search tool


@dataclass
class CompletionResult:
    """Result from a completion call: ok(text) or a tagged failure."""
    ok: bool
    text: str = ""
    failure: Optional[FailureKind] = None
    error: Optional[str] = None  # upstream message, when one was given
    status_code: Optional[int] = None
    tool_activity_ignored: bool = False

    @classmethod
    def success(cls, text: str, tool_activity_ignored: bool = False) -> "CompletionResult":
        return cls(ok=True, text=text, tool_activity_ignored=tool_activity_ignored)

    @classmethod
    def failed(
        cls,
        failure: FailureKind,
        error: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> "CompletionResult":
        return cls(ok=False, failure=failure, error=error, status_code=status_code)


class CompletionService(Protocol):
    """Interface for the remote text-completion service."""

    async def invoke(
        self,
        prompt: str,
        *,
        api_key: str,
        system: Optional[str] = None,
        options: Optional[CompletionOptions] = None,
    ) -> CompletionResult:
        """
        Request a completion.

        Args:
            prompt: User prompt
            api_key: Operator credential
            system: Optional system prompt
            options: Token limits, reasoning budget, tool use

        Returns:
            CompletionResult; never raises for HTTP or transport failures
        """
        ...


# =============================================================================
# Configuration Store Interface
# =============================================================================

# Keys consumed by the core
KEY_API_KEY = "claude_api_key"
KEY_TONE = "tone"
KEY_USER_CONTEXT = "user_context"
KEY_CUSTOM_INSTRUCTIONS = "custom_instructions"
KEY_OUTREACH_INSTRUCTIONS = "outreach_instructions"
KEY_MEETING_LINK = "meeting_link"

STORE_KEYS = (
    KEY_API_KEY,
    KEY_TONE,
    KEY_USER_CONTEXT,
    KEY_CUSTOM_INSTRUCTIONS,
    KEY_OUTREACH_INSTRUCTIONS,
    KEY_MEETING_LINK,
)


class ConfigStore(Protocol):
    """Interface for the operator's key-value settings."""

    def get(self, key: str) -> Optional[str]:
        """Value for key, or None when unset."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store a value."""
        ...


# =============================================================================
# Tool Registry
# =============================================================================

@dataclass
class ToolRegistry:
    """
    Collaborators injected into the core by the host.

    Usage:
        if tools.completion:
            result = await tools.completion.invoke(prompt, api_key=key)
    """
    completion: Optional[CompletionService] = None
    store: Optional[ConfigStore] = None

    def available(self) -> List[str]:
        """List available (non-None) tools."""
        return [name for name in ("completion", "store") if getattr(self, name) is not None]


# =============================================================================
# Null Implementations for Testing
# =============================================================================

class NullCompletionService:
    """Null implementation that always reports a network failure."""

    async def invoke(
        self,
        prompt: str,
        *,
        api_key: str,
        system: Optional[str] = None,
        options: Optional[CompletionOptions] = None,
    ) -> CompletionResult:
        return CompletionResult.failed(FailureKind.NETWORK, error="Completion service not available")


class NullConfigStore:
    """Null implementation with nothing configured."""

    def get(self, key: str) -> Optional[str]:
        return None

    def set(self, key: str, value: str) -> None:
        return None


def create_null_tools() -> ToolRegistry:
    """Create a ToolRegistry with null implementations."""
    return ToolRegistry(completion=NullCompletionService(), store=NullConfigStore())
