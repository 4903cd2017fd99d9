"""
Host Completion Client Implementation
=====================================

Concrete implementation of the completion service against the Claude
Messages API over httpx. This module performs actual network I/O and
should NOT be imported by assist_core.

HTTP and transport failures are returned as tagged CompletionResult
values, never raised.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from assist_core.tools_api import CompletionOptions, CompletionResult, FailureKind
from assist_runtime.config import AssistConfig, get_config

logger = logging.getLogger(__name__)

MESSAGES_PATH = "/v1/messages"
WEB_SEARCH_TOOL_TYPE = "web_search_20250305"

STATUS_FAILURES = {
    400: FailureKind.MALFORMED_REQUEST,
    401: FailureKind.UNAUTHORIZED,
    429: FailureKind.RATE_LIMITED,
}


def build_request_body(
    model: str,
    prompt: str,
    system: Optional[str],
    options: CompletionOptions,
) -> Dict[str, Any]:
    """Messages API request body for one user turn."""
    body: Dict[str, Any] = {
        "model": model,
        "max_tokens": options.max_output_tokens,
        "messages": [{"role": "user", "content": prompt}],
    }
    if system:
        body["system"] = system
    if options.reasoning_budget:
        body["thinking"] = {"type": "enabled", "budget_tokens": options.reasoning_budget}
    if options.web_search_max_uses:
        body["tools"] = [{
            "type": WEB_SEARCH_TOOL_TYPE,
            "name": "web_search",
            "max_uses": options.web_search_max_uses,
        }]
    return body


def extract_text(data: Dict[str, Any]) -> Tuple[str, bool]:
    """
    Join the text blocks of a Messages API response.

    Returns:
        (text, skipped) where skipped is True when thinking, tool-use or
        search-result blocks were dropped
    """
    parts: List[str] = []
    skipped = False
    for block in data.get("content") or []:
        if block.get("type") == "text":
            parts.append(block.get("text", ""))
        else:
            skipped = True
    return "\n".join(parts).strip(), skipped


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            return error.get("message")
    return None


class ClaudeCompletionClient:
    """
    Host implementation of the completion service.

    Satisfies the CompletionService protocol from assist_core.tools_api.
    """

    def __init__(
        self,
        config: Optional[AssistConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize completion client.

        Args:
            config: Runtime configuration. If None, uses the global config.
            client: Preconfigured httpx client (tests pass one with a mock transport)
        """
        self.config = config or get_config()
        self.client = client or httpx.AsyncClient(
            base_url=self.config.api_base_url,
            timeout=self.config.request_timeout_seconds,
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def invoke(
        self,
        prompt: str,
        *,
        api_key: str,
        system: Optional[str] = None,
        options: Optional[CompletionOptions] = None,
    ) -> CompletionResult:
        """
        Send one prompt and return the joined text of the reply.

        Args:
            prompt: User prompt
            api_key: Operator credential, sent as x-api-key
            system: Optional system prompt
            options: Token limits, thinking budget, web search

        Returns:
            CompletionResult; 401/429/400 and other non-2xx statuses and
            transport errors come back as tagged failures
        """
        options = options or CompletionOptions()
        headers = {
            "x-api-key": api_key,
            "anthropic-version": self.config.api_version,
            "content-type": "application/json",
        }
        body = build_request_body(self.config.model, prompt, system, options)

        try:
            response = await self.client.post(MESSAGES_PATH, json=body, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("Completion request failed: %s", type(e).__name__)
            return CompletionResult.failed(FailureKind.NETWORK, error=str(e) or type(e).__name__)

        if response.status_code >= 300:
            kind = STATUS_FAILURES.get(response.status_code, FailureKind.HTTP_ERROR)
            message = _error_message(response)
            logger.warning("Completion service returned %d (%s)", response.status_code, kind.value)
            return CompletionResult.failed(kind, error=message, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError:
            return CompletionResult.failed(
                FailureKind.HTTP_ERROR,
                error="Invalid response from completion service",
                status_code=response.status_code,
            )

        text, skipped = extract_text(data)
        return CompletionResult.success(text, tool_activity_ignored=skipped)
