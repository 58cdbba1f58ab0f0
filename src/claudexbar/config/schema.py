"""Configuration schema using Pydantic for validation."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class BarConfig(BaseModel):
    """User overrides for timeouts, the host process and the codex binary."""

    version: Literal[1] = 1
    default_provider: Literal["claude", "codex"] = "codex"
    http_timeout_seconds: float = Field(default=10.0, gt=0)
    rpc_timeout_seconds: float = Field(default=8.0, gt=0)
    codex_command: str = "codex"
    host_process: str = "waybar"
    host_signal: int = Field(default=11, ge=0)
    state_dir: Optional[str] = None

    model_config = {"extra": "forbid"}
