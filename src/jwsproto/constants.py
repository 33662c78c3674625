"""JWS constants."""
from typing import Any
from typing import Dict

DEFAULT_ALGORITHM = 'RS256'
"""Algorithm used by the CLI when ``--alg`` is not given."""

NONE_ALGORITHM = 'none'
"""Unsecured JWS algorithm identifier (RFC 7518, section 3.6)."""

SEGMENT_SEPARATOR = '.'
"""Separator between compact serialization segments."""

COMPACT_SEGMENTS = 3
"""Number of segments in a compact JWS."""

PROTECTED_JSON_DUMPS_PARAMS: Dict[str, Any] = {
    'indent': None,
    'separators': (',', ':'),
    'sort_keys': False,
}
"""Parameters for :func:`json.dumps` when rendering protected headers."""

PRETTY_JSON_DUMPS_PARAMS: Dict[str, Any] = {
    'indent': 4,
    'separators': (',', ': '),
    'sort_keys': True,
}
"""Parameters for :func:`json.dumps` when printing for humans."""

FILE_ENCODING = 'utf-8'
"""Encoding of signed objects written to disk."""
