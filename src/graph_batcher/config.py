"""
Configuration management for the Graph Batcher.

Supports configuration via environment variables, .env files and a JSON
settings file (``local.settings.json`` by default).
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SETTINGS_FILE = "local.settings.json"
ENV_PREFIX = "GRAPH_BATCHER_"

# Microsoft Graph accepts at most 20 sub-requests per JSON batch
GRAPH_MAX_BATCH_SIZE = 20


class ConfigurationError(Exception):
    """Raised when required settings are missing or invalid."""

    def __init__(self, message: str, keys: Optional[list] = None):
        super().__init__(message)
        self.keys = keys or []


def _env_choices(field: str, name: str) -> AliasChoices:
    """Accept the field name, the prefixed variable and the bare settings name."""
    return AliasChoices(field, f"{ENV_PREFIX}{field.upper()}", name)


class GraphBatcherConfig(BaseSettings):
    """
    Configuration settings for the Graph Batcher.

    All settings can be configured via environment variables with the
    GRAPH_BATCHER_ prefix, or through the JSON settings file. The
    credential and calendar settings are also read from their bare settings
    names (ClientId, ClientSecret, TenantId, Authority, Scope, CalendarEmail).
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Identity platform (client-credentials flow)
    client_id: str = Field(
        validation_alias=_env_choices("client_id", "ClientId"),
        description="Application (client) ID of the app registration"
    )
    client_secret: str = Field(
        validation_alias=_env_choices("client_secret", "ClientSecret"),
        description="Client secret of the app registration"
    )
    tenant_id: str = Field(
        validation_alias=_env_choices("tenant_id", "TenantId"),
        description="Directory (tenant) ID"
    )
    authority: str = Field(
        validation_alias=_env_choices("authority", "Authority"),
        description="Authority base URL, e.g. https://login.microsoftonline.com/"
    )
    scope: str = Field(
        validation_alias=_env_choices("scope", "Scope"),
        description="Scope requested for the token, e.g. https://graph.microsoft.com/.default"
    )

    # Calendar target
    calendar_email: str = Field(
        validation_alias=_env_choices("calendar_email", "CalendarEmail"),
        description="Mailbox whose calendar receives the events"
    )
    graph_url: str = Field(
        default="https://graph.microsoft.com/v1.0",
        description="Microsoft Graph API base URL"
    )

    # Batching parameters
    event_count: int = Field(
        default=40,
        ge=0,
        description="Number of events to create per run"
    )
    batch_size_max: int = Field(
        default=GRAPH_MAX_BATCH_SIZE,
        ge=1,
        le=GRAPH_MAX_BATCH_SIZE,
        description="Maximum number of requests in a single batch"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for each HTTP call"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(f"unknown log level {value!r}")
        return level

    @property
    def token_authority(self) -> str:
        """Authority URL including the tenant."""
        return self.authority.rstrip("/") + "/" + self.tenant_id

    @property
    def events_path(self) -> str:
        """Relative Graph path of the target calendar's events collection."""
        return f"/users/{self.calendar_email}/events"


def _to_field_name(key: str) -> str:
    """Convert a PascalCase settings key (``ClientId``) to ``client_id``."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def read_settings_file(path: Union[str, Path], required: bool = False) -> Dict[str, Any]:
    """
    Read a JSON settings file into field-name keyed values.

    Keys may be PascalCase (``ClientSecret``) or snake_case. An Azure
    Functions style ``{"Values": {...}}`` wrapper is unwrapped.

    Args:
        path: Settings file path
        required: Treat a missing file as an error instead of an empty source

    Returns:
        Mapping of config field names to values (empty if the file is absent)

    Raises:
        ConfigurationError: If the file is not a JSON object, or is missing
            while required
    """
    path = Path(path)
    if not path.exists():
        if required:
            raise ConfigurationError(f"Settings file {path} not found")
        return {}

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Cannot read settings file {path}: {e}")

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Settings file {path} must contain a JSON object")

    if isinstance(raw.get("Values"), dict):
        raw = raw["Values"]

    known = GraphBatcherConfig.model_fields
    values = {}
    for key, value in raw.items():
        name = _to_field_name(key)
        if name in known:
            values[name] = value
    return values


def load_config(
    settings_file: Union[str, Path, None] = DEFAULT_SETTINGS_FILE,
    settings_required: bool = False,
    **overrides: Any,
) -> GraphBatcherConfig:
    """
    Build the configuration from all sources.

    Priority (highest first): ``overrides``, the settings file, environment
    variables, ``.env``.

    Args:
        settings_file: JSON settings file path, or None to skip it
        settings_required: Fail if ``settings_file`` does not exist
        **overrides: Explicit values (e.g. from the command line); None values are ignored

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If a required key is missing or a value is invalid
    """
    values = read_settings_file(settings_file, settings_required) if settings_file else {}
    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return GraphBatcherConfig(**values)
    except ValidationError as e:
        keys = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        missing = [k for k, err in zip(keys, e.errors()) if err["type"] == "missing"]
        if missing:
            message = "Missing required settings: " + ", ".join(missing)
        else:
            message = "Invalid settings: " + "; ".join(
                f"{k}: {err['msg']}" for k, err in zip(keys, e.errors())
            )
        raise ConfigurationError(message, keys=keys) from e
