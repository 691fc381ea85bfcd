# settings.py
"""Runtime configuration read from environment variables."""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, model_validator

from .estimator import DEFAULT_BATCH_SIZE

APP_VERSION = "0.1.0"


class Settings(BaseModel):
    batch_size: int = Field(DEFAULT_BATCH_SIZE, ge=1)
    default_target: int = Field(1000, ge=1)
    max_target: int = Field(99_999, ge=1)
    fps: float = Field(60.0, ge=0)
    seed: Optional[int] = None
    host: str = "127.0.0.1"
    port: int = Field(9000, ge=1, le=65535)
    log_level: str = "INFO"

    @model_validator(mode="after")
    def check_target_bounds(self):
        if self.default_target > self.max_target:
            raise ValueError(f"default_target ({self.default_target}) exceeds max_target ({self.max_target})")
        return self


_ENV_KEYS = {
    "batch_size": "PI_BATCH_SIZE",
    "default_target": "PI_DEFAULT_TARGET",
    "max_target": "PI_MAX_TARGET",
    "fps": "PI_FPS",
    "seed": "PI_SEED",
    "host": "PI_HOST",
    "port": "PI_PORT",
    "log_level": "LOG_LEVEL",
}


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build ``Settings`` from the environment; unset or blank variables keep defaults."""
    env = os.environ if environ is None else environ
    values = {}
    for field, key in _ENV_KEYS.items():
        raw = env.get(key)
        if raw is not None and raw.strip():
            values[field] = raw.strip()
    return Settings(**values)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
    )
