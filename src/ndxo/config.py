"""Service settings read from the environment, and logging setup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    # Pause before the computer replies, purely for pacing.
    ai_delay: float = 0.5

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("NDXO_HOST", cls.host),
            port=int(env.get("NDXO_PORT", str(cls.port))),
            log_level=env.get("NDXO_LOG_LEVEL", cls.log_level).upper(),
            ai_delay=max(0.0, float(env.get("NDXO_AI_DELAY", str(cls.ai_delay)))),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT
    )
