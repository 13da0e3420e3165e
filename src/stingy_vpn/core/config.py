# src/stingy_vpn/core/config.py
"""
Configuration schema and loading for the stingy-vpn handlers.

Uses Pydantic for validation. Values come from the Lambda function's
environment variables, set by the provisioning stack. Settings are frozen
(immutable) after construction and validated once per cold start; any
problem is fatal and reported as a single ConfigurationError.
"""

import os
from collections.abc import Mapping
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from stingy_vpn.contracts.errors import ConfigurationError

LogLevel = Literal["debug", "info", "warning", "error"]

_LOG_LEVELS: dict[str, LogLevel] = {
    "debug": "debug",
    "info": "info",
    "warn": "warning",
    "warning": "warning",
    "error": "error",
}

DEFAULT_CLOUDFLARE_API_BASE_URL = "https://api.cloudflare.com/client/v4"


class RetrySettings(BaseModel):
    """Retry behavior configuration.

    The wait before attempt ``n`` (counted from 1) is
    ``initial_delay_seconds * exponential_base ** (n - 2)``, capped at
    ``max_delay_seconds``, plus up to ``jitter_seconds`` of random jitter.
    """

    model_config = {"frozen": True}

    max_attempts: int = Field(default=3, gt=0, description="Total attempts, including the first")
    initial_delay_seconds: float = Field(default=1.0, gt=0, description="Initial backoff delay")
    max_delay_seconds: float = Field(default=60.0, gt=0, description="Maximum backoff delay")
    exponential_base: float = Field(default=2.0, gt=1.0, description="Exponential backoff base")
    jitter_seconds: float = Field(default=0.0, ge=0, description="Upper bound of random jitter")


class PollSettings(BaseModel):
    """Fixed-interval readiness polling for a freshly launched instance."""

    model_config = {"frozen": True}

    interval_seconds: float = Field(default=10.0, gt=0, description="Wait between state checks")
    max_attempts: int = Field(default=30, gt=0, description="State checks before giving up")

    @property
    def budget_seconds(self) -> float:
        """Total time the poll is allowed to wait."""
        return self.interval_seconds * self.max_attempts


class _HandlerSettings(BaseModel):
    """Settings shared by both handlers."""

    model_config = {"frozen": True}

    parameter_store_prefix: str = Field(description="Parameter Store path prefix, e.g. /stingy-vpn/prod")
    log_level: LogLevel = Field(default="info", description="Minimum log level")
    log_format: Literal["json", "console"] = Field(default="json", description="Log renderer")

    @field_validator("parameter_store_prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        """Prefix must be an absolute hierarchy path; trailing slashes are dropped."""
        v = v.strip()
        if not v.startswith("/"):
            raise ValueError("must start with '/'")
        v = v.rstrip("/")
        if not v:
            raise ValueError("must name at least one path segment")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        """Accept any case and the ``warn`` alias; unknown names fall back to info."""
        if isinstance(v, str):
            return _LOG_LEVELS.get(v.strip().lower(), "info")
        return v


class RecoverySettings(_HandlerSettings):
    """Configuration for the recovery handler."""

    launch_template_id: str = Field(min_length=1, description="Launch template for replacement instances")
    subnet_id: str | None = Field(default=None, description="Subnet override; template subnet when unset")
    poll: PollSettings = Field(default_factory=PollSettings)


class DdnsSettings(_HandlerSettings):
    """Configuration for the DNS reconciliation handler."""

    cloudflare_zone_id: str = Field(min_length=1, description="Cloudflare zone holding the record")
    cloudflare_record_id: str = Field(min_length=1, description="Record whose content is kept in sync")
    cloudflare_api_base_url: str = Field(default=DEFAULT_CLOUDFLARE_API_BASE_URL)
    http_timeout_seconds: float = Field(default=10.0, gt=0)
    address_retry: RetrySettings = Field(
        default_factory=lambda: RetrySettings(max_attempts=5, initial_delay_seconds=2.0),
        description="Public IP lookup retry policy",
    )
    dns_retry: RetrySettings = Field(
        default_factory=lambda: RetrySettings(max_attempts=3, initial_delay_seconds=1.0),
        description="DNS record update retry policy",
    )

    @field_validator("cloudflare_api_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("https://", "http://")):
            raise ValueError("must be an http(s) URL")
        return v.rstrip("/")


# Environment variable -> settings field path.
_COMMON_ENV: dict[str, tuple[str, ...]] = {
    "PARAMETER_STORE_PREFIX": ("parameter_store_prefix",),
    "LOG_LEVEL": ("log_level",),
    "LOG_FORMAT": ("log_format",),
}

RECOVERY_ENV: dict[str, tuple[str, ...]] = {
    **_COMMON_ENV,
    "LAUNCH_TEMPLATE_ID": ("launch_template_id",),
    "SUBNET_ID": ("subnet_id",),
    "POLL_INTERVAL_SECONDS": ("poll", "interval_seconds"),
    "POLL_MAX_ATTEMPTS": ("poll", "max_attempts"),
}

DDNS_ENV: dict[str, tuple[str, ...]] = {
    **_COMMON_ENV,
    "CLOUDFLARE_ZONE_ID": ("cloudflare_zone_id",),
    "CLOUDFLARE_RECORD_ID": ("cloudflare_record_id",),
    "CLOUDFLARE_API_BASE_URL": ("cloudflare_api_base_url",),
    "HTTP_TIMEOUT_SECONDS": ("http_timeout_seconds",),
    "ADDRESS_RETRY_MAX_ATTEMPTS": ("address_retry", "max_attempts"),
    "ADDRESS_RETRY_BASE_DELAY_SECONDS": ("address_retry", "initial_delay_seconds"),
    "DNS_RETRY_MAX_ATTEMPTS": ("dns_retry", "max_attempts"),
    "DNS_RETRY_BASE_DELAY_SECONDS": ("dns_retry", "initial_delay_seconds"),
}


def _collect(environ: Mapping[str, str], env_map: Mapping[str, tuple[str, ...]]) -> dict[str, Any]:
    """Build a nested settings dict from the variables that are set.

    Empty strings count as unset, so a blank optional variable takes the
    default and a blank required one is reported as missing.
    """
    data: dict[str, Any] = {}
    for var, path in env_map.items():
        raw = environ.get(var)
        if raw is None or raw.strip() == "":
            continue
        node = data
        for part in path[:-1]:
            node = node.setdefault(part, {})
        node[path[-1]] = raw
    return data


def _describe_errors(exc: ValidationError, env_map: Mapping[str, tuple[str, ...]]) -> list[str]:
    """Translate pydantic error locations back into environment variable names."""
    by_path = {path: var for var, path in env_map.items()}
    problems = []
    for error in exc.errors():
        loc = tuple(str(part) for part in error["loc"])
        var = by_path.get(loc, ".".join(loc))
        if error["type"] == "missing":
            problems.append(f"{var} is required")
        else:
            problems.append(f"{var}: {error['msg']}")
    return problems


S = TypeVar("S", bound=_HandlerSettings)


def _load(
    model: type[S],
    env_map: Mapping[str, tuple[str, ...]],
    environ: Mapping[str, str] | None,
) -> S:
    source = os.environ if environ is None else environ
    try:
        return model.model_validate(_collect(source, env_map))
    except ValidationError as e:
        raise ConfigurationError(_describe_errors(e, env_map)) from e


def load_recovery_settings(environ: Mapping[str, str] | None = None) -> RecoverySettings:
    """Load and validate recovery handler settings.

    Args:
        environ: Variables to read (default: os.environ)

    Raises:
        ConfigurationError: If a required variable is missing or a value is invalid
    """
    return _load(RecoverySettings, RECOVERY_ENV, environ)


def load_ddns_settings(environ: Mapping[str, str] | None = None) -> DdnsSettings:
    """Load and validate DNS reconciliation handler settings.

    Args:
        environ: Variables to read (default: os.environ)

    Raises:
        ConfigurationError: If a required variable is missing or a value is invalid
    """
    return _load(DdnsSettings, DDNS_ENV, environ)
