"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["json", "console"]
SuccessPolicy = Literal["2xx", "exact"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class DatabaseConfig(BaseModel):
    """Connection and query parameters for the SQL record provider.

    Either ``url`` is given as a full SQLAlchemy URL, or it is assembled
    from ``driver``/``host``/``port``/``name``/``user``/``password``.
    """

    url: Optional[str] = Field(
        default=None,
        description="Full SQLAlchemy URL; wins over the discrete fields.",
    )
    driver: str = Field(default="mysql+pymysql", description="SQLAlchemy driver.")
    host: Optional[str] = Field(default="localhost", description="Server address.")
    port: Optional[int] = Field(default=None, description="Server port.")
    name: Optional[str] = Field(default=None, description="Database name.")
    user: Optional[str] = Field(default=None, description="Username.")
    password: Optional[str] = Field(default=None, repr=False, description="Password.")

    table: str = Field(default="mdl_url", description="Table holding the links.")
    id_column: str = Field(default="id")
    owner_column: str = Field(default="course")
    name_column: str = Field(default="name")
    url_column: str = Field(default="externalurl")

    @property
    def missing_credentials(self) -> list[str]:
        """Connection fields still unset (empty when ``url`` is given)."""
        if self.url:
            return []
        return [
            field
            for field in ("host", "name", "user", "password")
            if getattr(self, field) is None
        ]


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/check/logging/database/report).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="linkaudit", description="Application name.")

    # HTTP probing (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=3.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Timeout per HEAD probe in seconds.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether probes follow redirects before classifying.",
    )
    http_user_agent: str = Field(
        default="linkaudit/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing probes.",
    )

    # Batch checking (YAML section: check.*)
    max_concurrent: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices(
            "max_concurrent",
            AliasPath("check", "max_concurrent"),
        ),
        description="Max parallel probes. Unset = derived from CPU capacity.",
    )
    success_policy: SuccessPolicy = Field(
        default="2xx",
        validation_alias=AliasChoices(
            "success_policy",
            AliasPath("check", "success_policy"),
        ),
        description="'2xx' = any 2xx is success, 'exact' = only 200 OK.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="WARNING",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Minimum console log level (the log file records everything).",
    )
    log_format: LogFormat = Field(
        default="console",
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Console renderer format (console/json). The log file is always JSON."
        ),
    )
    log_dir: Optional[Path] = Field(
        default=Path("./logs"),
        validation_alias=AliasChoices(
            "log_dir",
            AliasPath("logging", "dir"),
        ),
        description="Directory for the daily rolling log file. None = no file.",
    )
    log_file_name: str = Field(
        default="log.txt",
        validation_alias=AliasChoices(
            "log_file_name",
            AliasPath("logging", "file_name"),
        ),
        description="Base name of the rolling log file.",
    )

    # Record source (YAML section: database.*)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    # Reporting (YAML section: report.*)
    owner_url_template: str = Field(
        default="https://moodle.example.org/course/view.php?id={owner_id}",
        validation_alias=AliasChoices(
            "owner_url_template",
            AliasPath("report", "owner_url_template"),
        ),
        description="Remediation link for failed records; uses {owner_id}.",
    )

    @field_validator("log_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Optional[Path]:
        if v is None:
            return None
        return _normalize_path(v)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @field_validator("max_concurrent")
    @classmethod
    def _validate_max_concurrent(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("max_concurrent must be >= 1")
        return v

    @field_validator("owner_url_template")
    @classmethod
    def _validate_owner_url_template(cls, v: str) -> str:
        if "{owner_id}" not in v:
            raise ValueError("owner_url_template must contain '{owner_id}'")
        return v


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read LINKAUDIT_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - LINKAUDIT_HTTP_TIMEOUT_SECONDS
    - LINKAUDIT_MAX_CONCURRENT
    - LINKAUDIT_LOG_LEVEL
    - LINKAUDIT_DB_HOST / LINKAUDIT_DB_NAME / LINKAUDIT_DB_USER / LINKAUDIT_DB_PASSWORD
    """

    model_config = SettingsConfigDict(
        env_prefix="LINKAUDIT_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    max_concurrent: Optional[int] = None
    success_policy: Optional[SuccessPolicy] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None
    log_dir: Optional[Path] = None

    db_url: Optional[str] = None
    db_driver: Optional[str] = None
    db_host: Optional[str] = None
    db_port: Optional[int] = None
    db_name: Optional[str] = None
    db_user: Optional[str] = None
    db_password: Optional[str] = Field(default=None, repr=False)
    db_table: Optional[str] = None

    owner_url_template: Optional[str] = None

    @field_validator("log_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
