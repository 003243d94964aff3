"""Centralized environment-based settings for valuehash.

Only consulted by the module-level convenience API (``compute_digest``);
Hashers built explicitly take their accumulator and Options directly.

Usage:
    from valuehash.config.settings import get_settings
    settings = get_settings()
"""

import os
from dataclasses import dataclass
from pathlib import Path

from valuehash.config.options import DEFAULT_TAG


@dataclass(frozen=True)
class ValueHashSettings:
    """Immutable library settings loaded from environment."""

    # Logging
    log_level: str = "INFO"

    # Accumulator algorithm name, see valuehash.accumulators
    algorithm: str = "blake2b"

    # Options
    tag: str = DEFAULT_TAG
    options_file: Path | None = None

    # Maximum idle HashStates kept per Hasher
    pool_size: int = 64


def get_settings() -> ValueHashSettings:
    """Load settings from environment variables.

    Environment variables (all optional):
        VALUEHASH_LOG_LEVEL: Logging level (default: INFO)
        VALUEHASH_ALGORITHM: Accumulator algorithm (default: blake2b)
        VALUEHASH_TAG: Struct field tag key (default: valuehash)
        VALUEHASH_OPTIONS_FILE: YAML file with default Options
        VALUEHASH_POOL_SIZE: Idle HashStates kept per Hasher (default: 64)
    """
    options_file = os.environ.get("VALUEHASH_OPTIONS_FILE", "")

    return ValueHashSettings(
        log_level=os.environ.get("VALUEHASH_LOG_LEVEL", "INFO").upper(),
        algorithm=os.environ.get("VALUEHASH_ALGORITHM", "blake2b").lower(),
        tag=os.environ.get("VALUEHASH_TAG", DEFAULT_TAG) or DEFAULT_TAG,
        options_file=Path(options_file) if options_file else None,
        pool_size=int(os.environ.get("VALUEHASH_POOL_SIZE", "64")),
    )
