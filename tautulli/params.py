import dataclasses
from collections.abc import Mapping
from typing import Any, List, Optional, Tuple
from urllib.parse import quote_plus

from tautulli.errors import EncodingError


def query_field(key: str, *, omitempty: bool = False, **kwargs) -> Any:
    """Declare a dataclass field that maps to the query parameter ``key``.

    With ``omitempty`` the parameter is left out entirely when the value is
    the zero value of its type instead of being sent as an empty string.
    """
    metadata = dict(kwargs.pop('metadata', None) or {})
    metadata.update({'query': key, 'omitempty': omitempty})
    return dataclasses.field(metadata=metadata, **kwargs)


def _is_zero(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple)):
        return len(value) == 0
    if isinstance(value, (int, float)):
        return value == 0
    return False


def _render(key: str, value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (str, int, float)):
        return str(value)
    if isinstance(value, bytes):
        return value.decode('utf-8')
    raise EncodingError(f"Unsupported value for parameter {key!r}: {type(value).__name__}")


def _pairs(params: Any) -> List[Tuple[str, Any, bool]]:
    if isinstance(params, Mapping):
        return [(str(key), value, False) for key, value in params.items()]
    if dataclasses.is_dataclass(params) and not isinstance(params, type):
        return [
            (f.metadata.get('query', f.name), getattr(params, f.name), f.metadata.get('omitempty', False))
            for f in dataclasses.fields(params)
        ]
    raise EncodingError(f"Parameters must be a dataclass instance or a mapping, got {type(params).__name__}")


def encode_parameters(params: Optional[Any]) -> str:
    """Encode a parameter record in a form suitable for a URL query.

    Keys keep their declaration order, so the same record always encodes to
    the same string. Sequence values are sent as repeated keys.
    """
    if params is None:
        return ''

    parts = []
    for key, value, omitempty in _pairs(params):
        if omitempty and _is_zero(value):
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            parts.append(f"{quote_plus(key)}={quote_plus(_render(key, item))}")
    return '&'.join(parts)
