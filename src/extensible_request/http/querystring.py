"""Query-string encoding with configurable separators and list handling."""

import math
from collections.abc import Mapping
from typing import Any, Optional
from urllib.parse import quote

from ..models.config import QueryStringOptions

# Characters left unescaped besides A-Z a-z 0-9 and "-_.~"
UNRESERVED_EXTRA = "!'()*"


def escape(value: str) -> str:
    """Percent-encode a key or value, leaving only unreserved characters."""
    return quote(value, safe=UNRESERVED_EXTRA)


def _stringify_primitive(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return ""
        # 1.0 -> "1", as JavaScript number formatting does
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    # None, nested mappings and other objects have no scalar form
    return ""


def stringify(params: Optional[Mapping[str, Any]], options: Optional[QueryStringOptions] = None) -> str:
    """
    Encode a mapping as a query string.

    Scalars are converted to text (booleans as "true"/"false", None as an
    empty value). Lists and tuples repeat the key, or append "[]" to it with
    ``array_format="brackets"``; empty lists contribute nothing.

    Args:
        params: Query parameters (None or an empty mapping gives "")
        options: Separators, list format and an optional custom encoder

    Returns:
        The encoded query string without a leading "?"

    Example:
        >>> stringify({"a": 1, "tags": ["x", "y"]})
        'a=1&tags=x&tags=y'
        >>> stringify({"a": 1, "b": 2}, QueryStringOptions(sep=";", eq=":"))
        'a:1;b:2'
    """
    if not params:
        return ""

    options = options or QueryStringOptions()
    encode = options.encoder or escape

    fields: list[str] = []
    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            name = f"{key}[]" if options.array_format == "brackets" else str(key)
            encoded_key = encode(name)
            fields.extend(f"{encoded_key}{options.eq}{encode(_stringify_primitive(item))}" for item in value)
        else:
            fields.append(f"{encode(str(key))}{options.eq}{encode(_stringify_primitive(value))}")

    return options.sep.join(fields)
