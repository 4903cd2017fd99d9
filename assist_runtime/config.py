"""
Assistant Runtime Configuration
===============================

Centralizes process-level configuration: completion-service endpoint and
model, rate limits, research deadlines, server and logging settings.
Operator preferences (tone, API key, instructions) live in the
configuration store, not here.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class AssistConfig:
    """Configuration for the assistant runtime."""

    # Completion service
    api_base_url: str = "https://api.anthropic.com"
    api_version: str = "2023-06-01"
    model: str = "claude-sonnet-4-20250514"
    request_timeout_seconds: float = 120.0

    # Outbound rate limit (fixed rolling window)
    rate_limit_max_requests: int = 10
    rate_limit_window_ms: int = 60000

    # Research
    research_enabled: bool = True
    research_timeout_seconds: float = 30.0  # reply flows
    outreach_research_timeout_seconds: float = 60.0  # multi-research outreach flow

    # Server settings
    host: str = "127.0.0.1"
    port: int = 8766

    # Operator configuration store
    store_path: Path = field(default_factory=lambda: Path("./config/assist_settings.json"))

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> AssistConfig:
        """Load configuration from environment variables."""
        return cls(
            api_base_url=os.getenv("ASSIST_API_BASE_URL", "https://api.anthropic.com"),
            api_version=os.getenv("ASSIST_API_VERSION", "2023-06-01"),
            model=os.getenv("ASSIST_MODEL", "claude-sonnet-4-20250514"),
            request_timeout_seconds=float(os.getenv("ASSIST_REQUEST_TIMEOUT_SECONDS", "120")),
            rate_limit_max_requests=int(os.getenv("ASSIST_RATE_LIMIT_MAX_REQUESTS", "10")),
            rate_limit_window_ms=int(os.getenv("ASSIST_RATE_LIMIT_WINDOW_MS", "60000")),
            research_enabled=os.getenv("ASSIST_RESEARCH_ENABLED", "true").lower() == "true",
            research_timeout_seconds=float(os.getenv("ASSIST_RESEARCH_TIMEOUT_SECONDS", "30")),
            outreach_research_timeout_seconds=float(
                os.getenv("ASSIST_OUTREACH_RESEARCH_TIMEOUT_SECONDS", "60")
            ),
            host=os.getenv("ASSIST_HOST", "127.0.0.1"),
            port=int(os.getenv("ASSIST_PORT", "8766")),
            store_path=Path(os.getenv("ASSIST_STORE_PATH", "./config/assist_settings.json")),
            log_level=os.getenv("ASSIST_LOG_LEVEL", "INFO"),
        )


# Global config instance
_config: Optional[AssistConfig] = None


def get_config() -> AssistConfig:
    """Get the global assistant configuration instance."""
    global _config
    if _config is None:
        _config = AssistConfig.from_env()
    return _config


def set_config(config: Optional[AssistConfig]) -> None:
    """Set the global assistant configuration instance (None reloads from the environment)."""
    global _config
    _config = config
