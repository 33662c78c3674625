"""JWS protected header.

Only two members are interpreted: ``"alg"``, bound to a signature backend
(:mod:`jwsproto.jwa`), and ``"b64"`` (RFC 7797). Everything else is kept
verbatim so that headers survive a parse/serialize round trip.

"""
import logging
from typing import Any
from typing import Callable
from typing import Dict
from typing import Mapping
from typing import NamedTuple
from typing import Optional
from typing import Tuple

import josepy as jose
from josepy import util as jose_util

from jwsproto import constants
from jwsproto import errors
from jwsproto import jwa

logger = logging.getLogger(__name__)

_INTERPRETED = ('alg', 'b64')
"""Header members with a typed attribute on :class:`Header`."""


class Header(jose.ImmutableMap, jose.JSONDeSerializable):
    """JOSE protected header.

    :ivar alg: Algorithm binding (:class:`jwsproto.jwa.Algorithm`), or
        ``None`` until resolved.
    :ivar b64: Value of the ``"b64"`` member, ``None`` if absent (which
        means payload encoding is on).
    :ivar fields: Extension members, as found in the JSON object.

    """
    __slots__ = ('alg', 'b64', 'fields')

    def __init__(self, alg: Optional[jwa.Algorithm] = None,
                 b64: Optional[bool] = None,
                 fields: Optional[Mapping[str, Any]] = None) -> None:
        fields = dict(fields or {})
        shadowed = sorted(name for name in _INTERPRETED if name in fields)
        if shadowed:
            raise errors.InvalidArgument(
                'Pass {0} as arguments, not as extension fields'.format(
                    ', '.join(shadowed)))
        super().__init__(alg=alg, b64=b64,
                         fields=jose_util.frozendict(fields))

    @classmethod
    def new(cls, alg: Any, b64: Optional[bool] = None,
            fields: Optional[Mapping[str, Any]] = None) -> 'Header':
        """Build a header programmatically.

        Goes through :meth:`from_json`, so ``alg`` and ``b64`` are
        validated exactly like on parse.

        """
        jobj = dict(fields or {})
        jobj['alg'] = str(alg) if isinstance(alg, jwa.Algorithm) else alg
        if b64 is not None:
            jobj['b64'] = b64
        return cls.from_json(jobj)

    @property
    def encode_payload(self) -> bool:
        """Whether the payload is base64url encoded in the signing input."""
        return self.b64 is not False

    def to_partial_json(self) -> Dict[str, Any]:
        if self.alg is None:
            raise errors.InvalidArgument(
                'Header without a resolved algorithm cannot be serialized')
        jobj = self.alg.backend.render_fields(self.alg.name, {})
        if self.b64 is not None:
            jobj['b64'] = self.b64
        jobj.update(self.fields)
        return jobj

    @classmethod
    def from_json(cls, jobj: Any) -> 'Header':
        if not isinstance(jobj, Mapping):
            raise jose.DeserializationError(
                'Header must be a JSON object, not {0}'.format(
                    type(jobj).__name__))
        state = _ParseState(cls(), dict(jobj))
        for parser in _PARSERS:
            state = parser(state)
        return state.header.update(fields=state.fields)

    def to_bytes(self) -> bytes:
        """Serialize into the bytes that get base64url encoded."""
        return self.json_dumps(
            **constants.PROTECTED_JSON_DUMPS_PARAMS).encode('utf-8')

    @classmethod
    def from_file(cls, path: str) -> 'Header':
        """Load header from a JSON file."""
        with open(path, 'rb') as header_file:
            return cls.json_loads(header_file.read())

    def to_file(self, path: str) -> str:
        """Save header as JSON.

        :returns: ``path``

        """
        with open(path, 'wb') as header_file:
            header_file.write(self.to_bytes())
        return path


class _ParseState(NamedTuple):
    header: Header
    fields: Dict[str, Any]


def _parse_alg(state: _ParseState) -> _ParseState:
    if 'alg' not in state.fields:
        raise errors.MissingRequiredField(['alg'])
    backend = jwa.resolve(state.fields['alg'])
    alg, remaining = backend.parse_fields(state.fields)
    logger.debug('Header algorithm %s handled by %r', alg, backend)
    return _ParseState(
        state.header.update(alg=jwa.Algorithm(backend, alg)), remaining)


def _parse_b64(state: _ParseState) -> _ParseState:
    if 'b64' not in state.fields:
        return state
    remaining = dict(state.fields)
    b64 = remaining.pop('b64')
    if not isinstance(b64, bool):
        raise errors.InvalidArgument(
            '"b64" header parameter must be a boolean, not {0!r}'.format(b64))
    return _ParseState(state.header.update(b64=b64), remaining)


_PARSERS: Tuple[Callable[[_ParseState], _ParseState], ...] = (
    _parse_alg,
    _parse_b64,
)
"""Ordered header field extractors, each claiming one member."""
