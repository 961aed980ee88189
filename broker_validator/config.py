"""
Runtime settings for the validation pipeline and its outer surfaces.

Only presentation and threshold knobs live here. Field lists and format
rules are module constants in their validators.

Environment variables (a `.env` file in the working directory is loaded first):
    BROKER_VALIDATOR_LOW_COMPLETENESS_THRESHOLD   default 50
    BROKER_VALIDATOR_SUMMARY_RECORD_LIMIT         default 10
    BROKER_VALIDATOR_API_MAX_RECORDS              default 10000
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigurationError

ENV_PREFIX = "BROKER_VALIDATOR_"


class ValidationSettings(BaseModel):
    """Tunable thresholds and limits."""

    low_completeness_threshold: float = Field(default=50.0, ge=0, le=100)
    summary_record_limit: int = Field(default=10, ge=1)
    api_max_records: int = Field(default=10_000, ge=1)


def load_settings(environ: Mapping[str, str] | None = None) -> ValidationSettings:
    """Build settings from environment variables.

    Args:
        environ: Mapping to read from. Defaults to ``os.environ`` after
            loading `.env`.

    Raises:
        ConfigurationError: if a variable is present but not a valid value.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    values: dict[str, str] = {}
    for field_name in ValidationSettings.model_fields:
        raw = environ.get(ENV_PREFIX + field_name.upper())
        if raw is not None and raw.strip():
            values[field_name] = raw.strip()

    try:
        return ValidationSettings(**values)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Invalid {ENV_PREFIX}* configuration: {exc.error_count()} error(s)",
            details={"errors": exc.errors(include_url=False)},
        ) from exc
