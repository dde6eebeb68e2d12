"""URL helpers for turning a URL string into transport options."""

from typing import Any
from urllib.parse import unquote, urlsplit

from ..errors import ArgumentError


def append_query(url: str, query: str) -> str:
    """
    Append an encoded query string to a URL.

    Nothing is appended for an empty query. A URL that already carries a
    query is extended with "&". Any fragment is dropped.
    """
    base = url.split("#", 1)[0]
    if not query.strip():
        return base
    joiner = "&" if "?" in base else "?"
    if base.endswith(("?", "&")):
        joiner = ""
    return f"{base}{joiner}{query}"


def parse_url(url: str) -> dict[str, Any]:
    """
    Parse an absolute URL into transport option fields.

    Args:
        url: URL such as "https://user:pw@api.example.com:8443/v1/items?q=1"

    Returns:
        Dict with protocol, host, port and path (path includes the query),
        plus auth when the URL carries credentials. Absent parts are left out
        so they do not override defaults when merged.

    Raises:
        ArgumentError: If the port is not a valid number
    """
    parsed = urlsplit(url.strip())

    try:
        port = parsed.port
    except ValueError as err:
        raise ArgumentError(f"Invalid port in URL: {url}") from err

    fields: dict[str, Any] = {}
    if parsed.scheme:
        fields["protocol"] = parsed.scheme.lower()
    if parsed.hostname:
        fields["host"] = parsed.hostname
    if port is not None:
        fields["port"] = port

    path = parsed.path or "/"
    if parsed.query:
        path = f"{path}?{parsed.query}"
    fields["path"] = path

    if parsed.username is not None:
        fields["auth"] = f"{unquote(parsed.username)}:{unquote(parsed.password or '')}"

    return fields
