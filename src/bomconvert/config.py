"""Runtime configuration resolved from explicit values or the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_ENGINE_URL = "http://localhost:8000"
DEFAULT_ENGINE_TIMEOUT = 120.0
DEFAULT_EXPORT_SHEET = "mBOM"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUTHY


@dataclass
class AIEngineConfig:
    """Configuration for :class:`bomconvert.engine.client.AIEngineClient`."""

    base_url: Optional[str] = None
    timeout: Optional[float] = None

    @property
    def resolved_base_url(self) -> str:
        if self.base_url:
            return self.base_url.rstrip("/")
        env_value = os.getenv("BOMCONVERT_AI_ENGINE_URL")
        if env_value:
            return env_value.rstrip("/")
        return DEFAULT_ENGINE_URL

    @property
    def resolved_timeout(self) -> float:
        if self.timeout is not None:
            return float(self.timeout)
        env_value = os.getenv("BOMCONVERT_AI_ENGINE_TIMEOUT")
        if env_value:
            try:
                return float(env_value)
            except ValueError:
                raise ValueError(
                    f"BOMCONVERT_AI_ENGINE_TIMEOUT must be a number of seconds, got {env_value!r}"
                ) from None
        return DEFAULT_ENGINE_TIMEOUT


@dataclass
class PipelineConfig:
    """Configuration for the ingestion pipeline and exports."""

    check_hierarchy: Optional[bool] = None
    sheet_name: Optional[str] = None

    @property
    def resolved_check_hierarchy(self) -> bool:
        if self.check_hierarchy is not None:
            return self.check_hierarchy
        return _env_flag("BOMCONVERT_CHECK_HIERARCHY")

    @property
    def resolved_sheet_name(self) -> str:
        if self.sheet_name:
            return self.sheet_name
        return os.getenv("BOMCONVERT_EXPORT_SHEET") or DEFAULT_EXPORT_SHEET
