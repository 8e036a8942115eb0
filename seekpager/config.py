"""
Pagination settings for seekpager.

Centralized defaults for page sizes. Values can be tuned per deployment
through environment variables with the SEEKPAGER_ prefix.
Example: SEEKPAGER_DEFAULT_LIMIT=20, SEEKPAGER_MAX_LIMIT=500
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Sentinel for "return every row"; never passed through limit normalization.
NO_LIMIT = -1
MAX_LIMIT = 100
DEFAULT_LIMIT = 10


class PaginationSettings(BaseSettings):
    """
    Pagination configuration settings.

    Attributes:
        default_limit: Page size substituted when a request asks for <= 0 rows.
        max_limit: System-wide maximum page size (hard limit).
    """

    default_limit: int = Field(
        default=DEFAULT_LIMIT,
        ge=1,
        description="Page size used when limit is not specified",
    )
    max_limit: int = Field(
        default=MAX_LIMIT,
        ge=1,
        description="Maximum allowed page size",
    )

    model_config = SettingsConfigDict(
        env_prefix="SEEKPAGER_",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    @model_validator(mode="after")
    def check_default_within_max(self) -> PaginationSettings:
        if self.default_limit > self.max_limit:
            raise ValueError(
                f"default_limit ({self.default_limit}) cannot exceed max_limit ({self.max_limit})"
            )
        return self


@lru_cache(maxsize=1)
def get_settings() -> PaginationSettings:
    """Returns the process-wide settings, read from the environment once."""
    return PaginationSettings()
