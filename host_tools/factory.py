"""
Host Tools Factory
==================

Factory function for creating a ToolRegistry with the host tool
implementations. This is the main entry point for the host runtime.

This package contains concrete implementations of the tool interfaces
defined in assist_core.tools_api. These implementations perform actual
I/O (HTTP, file system) and should NEVER be imported by assist_core.

Package structure:
    host_tools/
        completion_client/ - Claude Messages API client (httpx)
        config_store/      - Operator settings store (JSON file, in-memory)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from assist_runtime.config import AssistConfig, get_config

if TYPE_CHECKING:
    from assist_core.tools_api import ToolRegistry

logger = logging.getLogger(__name__)


def create_host_tools(
    enable_completion: bool = True,
    enable_store: bool = True,
    config: Optional[AssistConfig] = None,
) -> "ToolRegistry":
    """
    Create a ToolRegistry with the available host tool implementations.

    Args:
        enable_completion: Enable the completion-service client
        enable_store: Enable the JSON settings store
        config: Runtime configuration. If None, uses the global config.

    Returns:
        ToolRegistry with concrete tool implementations; a tool that
        fails to load is left as None
    """
    from assist_core.tools_api import ToolRegistry

    config = config or get_config()
    registry = ToolRegistry()

    if enable_completion:
        try:
            from host_tools.completion_client.client import ClaudeCompletionClient
            registry.completion = ClaudeCompletionClient(config=config)
        except Exception as e:
            logger.error("Failed to load completion client: %s", e)

    if enable_store:
        try:
            from host_tools.config_store.store import JsonFileStore
            registry.store = JsonFileStore(config.store_path)
        except Exception as e:
            logger.error("Failed to load settings store: %s", e)

    return registry
