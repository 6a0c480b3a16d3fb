"""Settings for the interpretation layer using Pydantic.

Values come from programmatic overrides first, then `FITSCAN_*`
environment variables, then defaults. Nothing else in the package reads
the environment.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fitscan.constants import (
    DEFAULT_MODEL,
    MAX_TEXT_SIZE,
    MAX_TRANSPORT_ATTEMPTS,
    RETRY_BASE_DELAY,
)
from fitscan.core.exceptions import ConfigurationError
from fitscan.tables import FallbackTables, default_tables, tables_from


class InterpreterSettings(BaseSettings):
    """Pydantic settings schema for the interpretation layer.

    Integrates with environment variables using the FITSCAN_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="FITSCAN_",
        env_file=None,
        case_sensitive=False,
        extra="ignore",
    )

    enable_diagnostics: bool = Field(
        default=False,
        description="Attach recovery diagnostics to result envelopes",
    )

    max_text_size: int = Field(
        default=MAX_TEXT_SIZE,
        description="Response text beyond this many characters is cut",
        ge=1,
    )

    tables_path: Path | None = Field(
        default=None,
        description="TOML file replacing the bundled fallback tables",
    )

    max_transport_attempts: int = Field(
        default=MAX_TRANSPORT_ATTEMPTS,
        description="Attempt cap for generate_with_retries",
        ge=1,
        le=10,
    )

    retry_base_delay: float = Field(
        default=RETRY_BASE_DELAY,
        description="First backoff delay in seconds; doubles per attempt",
        ge=0,
    )

    model: str = Field(
        default=DEFAULT_MODEL,
        description="Model identifier used by GenAITransport",
        min_length=1,
    )

    @field_validator("tables_path", mode="before")
    @classmethod
    def empty_path_is_none(cls, v: Any) -> Any:
        """Treat an empty FITSCAN_TABLES_PATH as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def load_tables(self) -> FallbackTables:
        """Return the configured tables, cached per process."""
        if self.tables_path is None:
            return default_tables()
        return tables_from(str(self.tables_path))

    def to_dict(self) -> dict[str, Any]:
        return {
            "enable_diagnostics": self.enable_diagnostics,
            "max_text_size": self.max_text_size,
            "tables_path": self.tables_path,
            "max_transport_attempts": self.max_transport_attempts,
            "retry_base_delay": self.retry_base_delay,
            "model": self.model,
        }


def resolve_settings(**overrides: Any) -> InterpreterSettings:
    """Build settings from overrides and the environment.

    Raises:
        ConfigurationError: If any value fails validation.
    """
    try:
        return InterpreterSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid fitscan settings: {e}") from e
