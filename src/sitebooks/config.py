"""Import settings loaded from the environment."""

import os
from dataclasses import dataclass, replace
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from sitebooks.logger import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "SITEBOOKS_"


@dataclass(frozen=True)
class ImportSettings:
    """Tunable thresholds and retry policy for the import pipeline."""

    auto_match_threshold: float = 75.0
    suggestion_floor: float = 40.0
    max_suggestions: int = 5
    max_insert_attempts: int = 3
    retry_delay: float = 0.0

    def __post_init__(self):
        if not 0 <= self.suggestion_floor <= self.auto_match_threshold <= 100:
            raise ValueError(
                "Thresholds must satisfy 0 <= suggestion_floor <= auto_match_threshold <= 100"
            )
        if self.max_insert_attempts < 1:
            raise ValueError("max_insert_attempts must be at least 1")


def _read_env(name: str, cast, default):
    raw = os.environ.get(f"{ENV_PREFIX}{name}")
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        logger.warning("Ignoring invalid %s%s=%r", ENV_PREFIX, name, raw)
        return default


def load_settings(dotenv_path: Optional[str] = None, **overrides) -> ImportSettings:
    """Build ImportSettings from SITEBOOKS_* environment variables.

    A .env file is loaded first when one is found; variables already present
    in the environment win.
    """
    env_file = dotenv_path or find_dotenv(usecwd=True)
    if env_file:
        load_dotenv(env_file, override=False)

    defaults = ImportSettings()
    settings = ImportSettings(
        auto_match_threshold=_read_env("AUTO_MATCH_THRESHOLD", float, defaults.auto_match_threshold),
        suggestion_floor=_read_env("SUGGESTION_FLOOR", float, defaults.suggestion_floor),
        max_suggestions=_read_env("MAX_SUGGESTIONS", int, defaults.max_suggestions),
        max_insert_attempts=_read_env("MAX_INSERT_ATTEMPTS", int, defaults.max_insert_attempts),
        retry_delay=_read_env("RETRY_DELAY", float, defaults.retry_delay),
    )
    if overrides:
        settings = replace(settings, **overrides)
    return settings
