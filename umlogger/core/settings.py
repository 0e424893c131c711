"""Application settings with environment overrides."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = "UMLOGGER_"


@dataclass
class AppSettings:
    """Application settings."""
    # Device
    device: str = "/dev/rfcomm0"
    baud: int = 9600
    clear_on_start: bool = False

    # Output
    format: str = "Volt, Amp"
    interval: float = 1.0  # Seconds between samples

    # Diagnostics
    log_level: str = "INFO"

    @classmethod
    def load(cls, environ: Optional[Mapping[str, str]] = None) -> 'AppSettings':
        """Load settings, overlaying ``UMLOGGER_<FIELD>`` environment variables.

        Values that cannot be converted keep their default.
        """
        env = os.environ if environ is None else environ
        instance = cls()  # Start with defaults

        for f in fields(instance):
            stored = env.get(ENV_PREFIX + f.name.upper())
            if stored is None or not stored.strip():
                continue
            stored = stored.strip()
            default_val = getattr(instance, f.name)

            # Type conversion based on default value type
            try:
                if isinstance(default_val, bool):
                    value = stored.lower() in ('true', '1', 'yes', 'on')
                elif isinstance(default_val, int):
                    value = int(stored)
                elif isinstance(default_val, float):
                    value = float(stored)
                else:
                    value = stored
            except ValueError:
                logger.warning("Ignoring invalid %s%s=%r", ENV_PREFIX, f.name.upper(), stored)
                continue
            setattr(instance, f.name, value)

        instance.log_level = instance.log_level.upper()
        return instance

    def validate(self) -> None:
        """Raise ValueError if the settings cannot drive a session."""
        if not math.isfinite(self.interval) or self.interval <= 0:
            raise ValueError(f"interval must be a positive number of seconds, got {self.interval}")
        if self.baud <= 0:
            raise ValueError(f"baud must be positive, got {self.baud}")
        if not self.device:
            raise ValueError("device must not be empty")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"unknown log level {self.log_level!r}")
