from __future__ import annotations

import os
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, Field

from .constants import (
    DEFAULT_GRACE_SECONDS,
    DEFAULT_MAX_ROOM_AGE_SECONDS,
    DEFAULT_OUTBOX_LIMIT,
    DEFAULT_ROOM_CODE_LENGTH,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
)

ENV_PREFIX = "KANGAROO_"


class Settings(BaseModel):
    """Server settings. Defaults are the production values."""

    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    grace_seconds: float = Field(default=DEFAULT_GRACE_SECONDS, ge=0)
    sweep_interval_seconds: float = Field(default=DEFAULT_SWEEP_INTERVAL_SECONDS, gt=0)
    max_room_age_seconds: float = Field(default=DEFAULT_MAX_ROOM_AGE_SECONDS, gt=0)
    room_code_length: int = Field(default=DEFAULT_ROOM_CODE_LENGTH, ge=4, le=12)
    outbox_limit: int = Field(default=DEFAULT_OUTBOX_LIMIT, ge=1)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``KANGAROO_*`` variables.

        ``PORT`` is honoured as a fallback for the port, as most PaaS hosts set it.
        """
        env = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = env.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw.upper() if name == "log_level" else raw
        if "port" not in values and env.get("PORT"):
            values["port"] = env["PORT"]
        return cls.model_validate(values)


__all__ = ["Settings", "ENV_PREFIX"]
