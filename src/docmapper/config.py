"""Centralized configuration for docmapper using Pydantic Settings."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class Settings(BaseSettings):
    """Strictly typed builder configuration loaded from environment variables.

    Every variable is prefixed with ``DOCMAPPER_`` (e.g. ``DOCMAPPER_TAG_KEY``).
    The index-level defaults mirror the values a freshly created index mapping
    carries, so an unconfigured builder produces the stock mapping.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCMAPPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    # Field naming
    tag_key: str = Field(
        default="json",
        description="Dataclass metadata key holding the serialization tag (e.g. 'firstName,omitempty')",
    )
    empty_tag_fallback: bool = Field(
        default=True,
        description="Fall back to the field identifier when a tag has an empty name segment; "
        "when False such fields are excluded",
    )

    # Index mapping defaults
    default_analyzer: str = Field(default="standard", description="Analyzer applied when a field names none")
    default_datetime_parser: str = Field(
        default="dateTimeOptional", description="Parser used for datetime fields without a date_format"
    )
    type_field: str = Field(default="_type", description="Document attribute holding the type name")
    default_type: str = Field(default="_default", description="Type name used when a document has none")
    default_field: str = Field(default="_all", description="Field searched when a query names none")
    store_dynamic: bool = Field(default=True, description="Store values of dynamically mapped fields")
    index_dynamic: bool = Field(default=True, description="Index values of dynamically mapped fields")
    doc_values_dynamic: bool = Field(default=True, description="Keep doc values for dynamically mapped fields")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in _LOG_LEVELS:
            msg = f"log_level must be one of {sorted(_LOG_LEVELS)}, got {value!r}"
            raise ValueError(msg)
        return normalized

    @field_validator("tag_key")
    @classmethod
    def _require_tag_key(cls, value: str) -> str:
        if not value.strip():
            msg = "tag_key must not be empty"
            raise ValueError(msg)
        return value.strip()
