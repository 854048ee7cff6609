"""Settings loaded from the environment.

Values are read from ``NULLSCOPE_*`` environment variables,
a ``.env`` file in the working directory is loaded first
so that they can be kept next to the data being analysed.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _optional_int(name: str) -> int | None:
    value = os.getenv(name)
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class Settings:
    """Runtime settings of nullscope sessions and commands."""

    # CSV reading
    block_size: int | None = field(
        default_factory=lambda: _optional_int("NULLSCOPE_BLOCK_SIZE")
    )
    null_value: str = field(
        default_factory=lambda: os.getenv("NULLSCOPE_NULL_VALUE", "")
    )

    # Output
    max_rows: int = field(
        default_factory=lambda: int(os.getenv("NULLSCOPE_MAX_ROWS", "20"))
    )
    log_level: str = field(
        default_factory=lambda: os.getenv("NULLSCOPE_LOG_LEVEL", "WARNING").upper()
    )

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.block_size is not None and self.block_size <= 0:
            raise ValueError(
                f"NULLSCOPE_BLOCK_SIZE must be a positive integer, got {self.block_size}"
            )
        if self.max_rows <= 0:
            raise ValueError(
                f"NULLSCOPE_MAX_ROWS must be a positive integer, got {self.max_rows}"
            )
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(
                f"NULLSCOPE_LOG_LEVEL must be a logging level name, got {self.log_level}"
            )

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)
