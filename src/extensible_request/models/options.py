"""Per-call request options handed to the pipeline."""

from typing import Literal, Optional, Union

from multidict import CIMultiDict
from pydantic import BaseModel, Field, field_validator


class RequestOptions(BaseModel):
    """
    Fully merged options for one logical call.

    Built fresh per call from the parsed URL and the caller's
    :class:`~extensible_request.models.config.TransportOptions`, then never
    mutated. Header names are matched case-insensitively but keep the
    caller's spelling on the wire.

    Attributes:
        method: HTTP method
        protocol: URL scheme; anything starting with "https" uses TLS
        host: Host name or IP address
        port: Remote port (None = scheme default)
        path: Request path including the encoded query string
        headers: Request headers
        body: Optional request body
        auth: Basic authentication as 'user:password'
        timeout: Socket read idle timeout in milliseconds
        verify_ssl: Verify TLS certificates
    """

    method: Literal["GET", "POST"] = "GET"
    protocol: str = "http"
    host: str
    port: Optional[int] = Field(None, ge=1, le=65535)
    path: str = "/"
    headers: dict[str, str] = Field(default_factory=dict)
    body: Optional[Union[str, bytes]] = None
    auth: Optional[str] = None
    timeout: Optional[float] = Field(None, gt=0)
    verify_ssl: bool = True

    model_config = {"extra": "forbid", "frozen": True}

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    @property
    def payload(self) -> bytes:
        """Body as bytes (UTF-8 for text), empty when there is no body."""
        if not self.body:
            return b""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    def header(self, name: str) -> Optional[str]:
        """Look up a header case-insensitively."""
        return CIMultiDict(self.headers).get(name)

    def with_content_length(self) -> "RequestOptions":
        """
        Return a copy whose content-length matches the body.

        Any caller-supplied content-length, in any letter case, is replaced.
        """
        headers = CIMultiDict(self.headers)
        headers["content-length"] = str(len(self.payload))
        return self.model_copy(update={"headers": dict(headers)})

    @property
    def target(self) -> str:
        """Human-readable request target for logs and events."""
        port = f":{self.port}" if self.port else ""
        return f"{self.protocol}://{self.host}{port}{self.path}"
