"""Settings for hosting the bridge, read from ``LAMBDA_MCP_*`` environment variables."""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["BridgeSettings", "configure_logging"]


class BridgeSettings(BaseSettings):
    """Host-level configuration.

    Examples:
        LAMBDA_MCP_RESPONSE_TIMEOUT=25 bounds how long an invocation waits for
        the engine, returning 504 instead of running into the host timeout.
    """

    model_config = SettingsConfigDict(env_prefix="LAMBDA_MCP_")

    path: str = "/mcp"
    response_timeout: float | None = Field(default=None, gt=0)
    reuse_session: bool = True  # False builds a fresh engine per invocation
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8080


def configure_logging(settings: BridgeSettings) -> None:
    """Configure root logging for a host process. Library code never calls this."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
