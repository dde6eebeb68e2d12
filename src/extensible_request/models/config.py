"""Pydantic configuration models for extensible_request."""

import os
import re
from pathlib import Path
from typing import Callable, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


def _expand_env_var(value: Optional[str]) -> Optional[str]:
    """Expand environment variable references in a string.

    Supports $VAR and ${VAR} syntax. Returns original value if
    the env var is not set.
    """
    if value is None:
        return None

    # Match $VAR or ${VAR}
    pattern = r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)"

    def replace(match: re.Match) -> str:
        var_name = match.group(1) or match.group(2)
        return os.environ.get(var_name, match.group(0))

    return re.sub(pattern, replace, value)


class TransportOptions(BaseModel):
    """
    Caller-supplied transport options (``http_options``).

    Every field is optional. Fields the caller sets take precedence over
    the ones parsed from the URL; unset fields are left to the URL or to
    the defaults of :class:`RequestOptions`.

    ``auth`` supports environment variable expansion, e.g.
    ``{"auth": "user:${API_PASSWORD}"}``.
    """

    method: Optional[Literal["GET", "POST"]] = Field(None, description="HTTP method")
    protocol: Optional[str] = Field(None, description="URL scheme, e.g. 'https'")
    host: Optional[str] = Field(None, description="Host name or IP address")
    port: Optional[int] = Field(None, ge=1, le=65535, description="Remote port")
    path: Optional[str] = Field(None, description="Request path including any query string")
    headers: Optional[dict[str, str]] = Field(None, description="Request headers")
    auth: Optional[str] = Field(None, description="Basic authentication as 'user:password'")
    timeout: Optional[float] = Field(None, gt=0, description="Socket read idle timeout in milliseconds")
    verify_ssl: Optional[bool] = Field(None, description="Verify TLS certificates (https only)")
    body: Optional[Union[str, bytes]] = Field(None, description="Request body")

    model_config = {"extra": "forbid"}

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    def model_post_init(self, __context: object) -> None:
        """Expand environment variables in credentials after init."""
        if self.auth:
            object.__setattr__(self, "auth", _expand_env_var(self.auth))


class QueryStringOptions(BaseModel):
    """Configuration for encoding query parameters."""

    sep: str = Field("&", min_length=1, description="Separator between key/value pairs")
    eq: str = Field("=", min_length=1, description="Separator between a key and its value")
    array_format: Literal["repeat", "brackets"] = Field(
        "repeat",
        description="How list values are encoded: 'a=1&a=2' (repeat) or 'a[]=1&a[]=2' (brackets)",
    )
    encoder: Optional[Callable[[str], str]] = Field(
        None,
        description="Replacement for the default percent-encoder of keys and values",
    )

    model_config = {"extra": "forbid"}


class RetryPolicy(BaseModel):
    """
    Retry behaviour for a single logical call.

    The wait before retry ``n`` (0-indexed) is ``interval * 2 ** n``
    milliseconds; there is no upper bound.
    """

    retries: int = Field(3, ge=0, description="Retry attempts after the first one")
    interval: float = Field(200, ge=0, description="Initial wait between attempts in milliseconds")

    model_config = {"extra": "forbid"}

    @property
    def max_attempts(self) -> int:
        return self.retries + 1

    def delays(self) -> list[float]:
        """Waits (ms) taken if every attempt fails with a retriable error."""
        return [self.interval * (2**n) for n in range(self.retries)]


class ClientConfig(BaseModel):
    """
    Root configuration grouping the option sets of a call.

    Example:
        config = ClientConfig(
            transport=TransportOptions(headers={"accept": "application/json"}),
            retry=RetryPolicy(retries=5, interval=100),
        )

    YAML format:
        transport:
          headers:
            accept: application/json
          timeout: 5000
        query_string:
          array_format: brackets
        retry:
          retries: 5
          interval: 100
    """

    transport: TransportOptions = Field(default_factory=TransportOptions)
    query_string: QueryStringOptions = Field(default_factory=QueryStringOptions)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "WARNING",
        description="Logging level",
    )
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        data = self.model_dump(mode="json", exclude_none=True, exclude={"query_string": {"encoder"}})
        return yaml.dump(data, default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ClientConfig":
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> "ClientConfig":
        """Load config from YAML file."""
        return cls.from_yaml(path.read_text())
