"""JWS serializations.

https://tools.ietf.org/html/rfc7515#section-7

A signed object is either a compact string, a :class:`Flattened` JSON
object (exactly one signature) or a :class:`General` JSON object (shared
payload, one or more signatures). Objects are immutable; conversions
always build new values.

"""
import json
import logging
import re
from typing import Any
from typing import Dict
from typing import List
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import Union

import josepy as jose
from josepy import util as jose_util

from jwsproto import constants
from jwsproto import errors

logger = logging.getLogger(__name__)

_B64URL_RE = re.compile(r'\A[A-Za-z0-9_-]*\Z')


def decode_segment(segment: Any) -> bytes:
    """Decode an unpadded base64url segment.

    Only the canonical encoding is accepted: padding, characters outside
    the URL-safe alphabet and non-zero trailing bits are all rejected, so
    that every decoded value has exactly one wire form.

    :raises josepy.errors.DeserializationError: if ``segment`` is not
        canonical base64url

    """
    if not isinstance(segment, str) or not _B64URL_RE.match(segment):
        raise jose.DeserializationError(
            'Invalid base64url segment: {0!r}'.format(segment))
    decoded = jose.decode_b64jose(segment)
    if jose.encode_b64jose(decoded) != segment:
        raise jose.DeserializationError(
            'Non-canonical base64url segment: {0!r}'.format(segment))
    return decoded


def _frozen(header: Optional[Mapping[str, Any]]) -> Optional[jose_util.frozendict]:
    return None if header is None else jose_util.frozendict(dict(header))


def _required_str(jobj: Mapping[str, Any], name: str) -> str:
    try:
        value = jobj[name]
    except KeyError:
        raise errors.InvalidArgument(
            'Signed object is missing "{0}"'.format(name)) from None
    if not isinstance(value, str):
        raise errors.InvalidArgument(
            '"{0}" must be a base64url string'.format(name))
    return value


def _optional_header(jobj: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
    header = jobj.get('header')
    if header is not None and not isinstance(header, Mapping):
        raise errors.InvalidArgument('"header" must be a JSON object')
    return header


class Signature(jose.ImmutableMap, jose.JSONDeSerializable):
    """Signature entry of a general JWS.

    :ivar str protected: Base64url encoded protected header.
    :ivar header: Unprotected header, ``None`` if absent.
    :ivar str signature: Base64url encoded signature.

    """
    __slots__ = ('protected', 'header', 'signature')

    def __init__(self, protected: str, signature: str,
                 header: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(protected=protected, header=_frozen(header),
                         signature=signature)

    def to_partial_json(self) -> Dict[str, Any]:
        jobj: Dict[str, Any] = {'protected': self.protected}
        if self.header is not None:
            jobj['header'] = dict(self.header)
        jobj['signature'] = self.signature
        return jobj

    @classmethod
    def from_json(cls, jobj: Any) -> 'Signature':
        if not isinstance(jobj, Mapping):
            raise errors.InvalidArgument('Signature must be a JSON object')
        return cls(protected=_required_str(jobj, 'protected'),
                   header=_optional_header(jobj),
                   signature=_required_str(jobj, 'signature'))


class Flattened(jose.ImmutableMap, jose.JSONDeSerializable):
    """Flattened JWS JSON serialization (also the expanded compact form).

    :ivar str payload: Base64url encoded payload.
    :ivar str protected: Base64url encoded protected header.
    :ivar header: Unprotected header, ``None`` if absent.
    :ivar str signature: Base64url encoded signature.

    """
    __slots__ = ('payload', 'protected', 'header', 'signature')

    def __init__(self, payload: str, protected: str, signature: str,
                 header: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(payload=payload, protected=protected,
                         header=_frozen(header), signature=signature)

    @classmethod
    def from_entry(cls, payload: str, entry: Signature) -> 'Flattened':
        """Combine ``payload`` with a single signature entry."""
        return cls(payload=payload, protected=entry.protected,
                   header=entry.header, signature=entry.signature)

    @property
    def entry(self) -> Signature:
        """Signature entry, without the payload."""
        return Signature(protected=self.protected, header=self.header,
                         signature=self.signature)

    def to_partial_json(self) -> Dict[str, Any]:
        jobj = self.entry.to_partial_json()
        jobj['payload'] = self.payload
        return jobj

    @classmethod
    def from_json(cls, jobj: Any) -> 'Flattened':
        if not isinstance(jobj, Mapping):
            raise errors.InvalidArgument('JWS must be a JSON object')
        return cls.from_entry(_required_str(jobj, 'payload'),
                              Signature.from_json(jobj))


class General(jose.ImmutableMap, jose.JSONDeSerializable):
    """General JWS JSON serialization.

    :ivar str payload: Base64url encoded payload, shared by all entries.
    :ivar tuple signatures: :class:`Signature` entries, never empty.

    """
    __slots__ = ('payload', 'signatures')

    def __init__(self, payload: str, signatures: Any) -> None:
        signatures = tuple(signatures)
        if not signatures:
            raise errors.InvalidArgument(
                'General JWS needs at least one signature')
        super().__init__(payload=payload, signatures=signatures)

    def flattened(self) -> Tuple[Flattened, ...]:
        """Split into one :class:`Flattened` object per signature."""
        return tuple(Flattened.from_entry(self.payload, entry)
                     for entry in self.signatures)

    def to_partial_json(self) -> Dict[str, Any]:
        return {
            'payload': self.payload,
            'signatures': [entry.to_partial_json()
                           for entry in self.signatures],
        }

    @classmethod
    def from_json(cls, jobj: Any) -> 'General':
        if not isinstance(jobj, Mapping):
            raise errors.InvalidArgument('JWS must be a JSON object')
        signatures = jobj.get('signatures')
        if not isinstance(signatures, (list, tuple)):
            raise errors.InvalidArgument('"signatures" must be a JSON array')
        return cls(payload=_required_str(jobj, 'payload'),
                   signatures=[Signature.from_json(entry)
                               for entry in signatures])


SignedObject = Union[str, Flattened, General]


def from_json(jobj: Any) -> Union[Flattened, General]:
    """Deserialize a JWS JSON object of either shape."""
    if not isinstance(jobj, Mapping):
        raise errors.InvalidArgument('JWS must be a JSON object')
    if 'signature' in jobj and 'signatures' in jobj:
        raise errors.InvalidArgument('Flat mixed with non-flat')
    if 'signatures' in jobj:
        return General.from_json(jobj)
    return Flattened.from_json(jobj)


def coerce(signed: Any) -> Union[Flattened, General]:
    """Turn any single signed object into its JSON form.

    Compact strings are expanded and plain mappings deserialized.

    """
    if isinstance(signed, (Flattened, General)):
        return signed
    if isinstance(signed, (str, bytes)):
        return _expand(signed)
    if isinstance(signed, Mapping):
        return from_json(signed)
    raise errors.InvalidArgument(
        'Not a signed object: {0}'.format(type(signed).__name__))


def _compact(flat: Flattened) -> str:
    return constants.SEGMENT_SEPARATOR.join(
        (flat.protected, flat.payload, flat.signature))


def compact(signed: Any) -> Union[str, List[str]]:
    """Compact serialization.

    :param signed: :class:`Flattened`, :class:`General`, an equivalent
        JSON mapping or a list of flattened objects.

    :returns: One compact string for a flattened object, otherwise one
        per signature (in order).

    :raises errors.InvalidArgument: if a required member is missing

    """
    if isinstance(signed, (list, tuple)):
        flats = [coerce(item) for item in signed]
        if not all(isinstance(flat, Flattened) for flat in flats):
            raise errors.InvalidArgument(
                'Only flattened objects can be compacted in bulk')
        return [_compact(flat) for flat in flats]
    if isinstance(signed, (str, bytes)):
        raise errors.InvalidArgument('Object is already compact')
    signed = coerce(signed)
    if isinstance(signed, General):
        return [_compact(flat) for flat in signed.flattened()]
    return _compact(signed)


def _expand(compact_jws: Any) -> Flattened:
    if isinstance(compact_jws, bytes):
        try:
            compact_jws = compact_jws.decode('ascii')
        except UnicodeDecodeError:
            raise errors.InvalidArgument(
                'Compact JWS must be ASCII') from None
    if not isinstance(compact_jws, str):
        raise errors.InvalidArgument(
            'Compact JWS must be a string, not {0}'.format(
                type(compact_jws).__name__))
    segments = compact_jws.split(constants.SEGMENT_SEPARATOR)
    if len(segments) != constants.COMPACT_SEGMENTS:
        raise errors.InvalidArgument(
            'Compact JWS serialization should comprise of exactly'
            ' {0} dot-separated components'.format(constants.COMPACT_SEGMENTS))
    protected, payload, signature = segments
    return Flattened(payload=payload, protected=protected, signature=signature)


def expand(signed: Any) -> Union[Flattened, General, List[Flattened]]:
    """Expand compact serialization into JSON form.

    A single string becomes a :class:`Flattened` object. A sequence of
    strings whose payloads decode to identical bytes is merged into one
    :class:`General` object, signatures kept in order. Otherwise the
    sequence is returned as a list of :class:`Flattened` objects.

    :raises errors.InvalidArgument: if a string does not have exactly
        three segments

    """
    if isinstance(signed, (str, bytes)):
        return _expand(signed)
    if not isinstance(signed, (list, tuple)):
        raise errors.InvalidArgument(
            'Cannot expand {0}'.format(type(signed).__name__))
    expanded = [_expand(item) for item in signed]
    payloads = [decode_segment(flat.payload) for flat in expanded]
    if expanded and all(payload == payloads[0] for payload in payloads):
        return General(payload=expanded[0].payload,
                       signatures=[flat.entry for flat in expanded])
    logger.debug('Not merging %d compact objects with different payloads',
                 len(expanded))
    return expanded


def _peekable(signed: Any) -> Union[Flattened, General]:
    if isinstance(signed, (list, tuple)):
        raise errors.InvalidArgument('Cannot peek into a list')
    return coerce(signed)


def peek_payload(signed: Any) -> bytes:
    """Decoded payload of ``signed``. Not authenticated!"""
    return decode_segment(_peekable(signed).payload)


peek = peek_payload


def peek_protected(signed: Any) -> bytes:
    """Decoded protected header of ``signed``. Not authenticated!"""
    flat = _peekable(signed)
    if not isinstance(flat, Flattened):
        raise errors.InvalidArgument('General JWS has one protected header'
                                     ' per signature')
    return decode_segment(flat.protected)


def peek_signature(signed: Any) -> bytes:
    """Decoded signature of ``signed``."""
    flat = _peekable(signed)
    if not isinstance(flat, Flattened):
        raise errors.InvalidArgument('General JWS has more than one'
                                     ' signature')
    return decode_segment(flat.signature)


def loads(data: Union[bytes, str]) -> SignedObject:
    """Parse a serialized signed object, compact or JSON.

    :raises josepy.errors.DeserializationError: if JSON is malformed
    :raises errors.InvalidArgument: if ``data`` is not UTF-8 text

    """
    if isinstance(data, bytes):
        try:
            data = data.decode(constants.FILE_ENCODING)
        except UnicodeDecodeError:
            raise errors.InvalidArgument(
                'Signed object must be {0} text'.format(
                    constants.FILE_ENCODING)) from None
    data = data.strip()
    if data.startswith('{'):
        try:
            jobj = json.loads(data)
        except ValueError as error:
            raise jose.DeserializationError(error)
        return from_json(jobj)
    _expand(data)
    return data


def dumps(signed: Any) -> str:
    """Serialize a signed object, keeping its shape."""
    if isinstance(signed, str):
        _expand(signed)
        return signed
    return coerce(signed).json_dumps()


def read_file(path: str) -> SignedObject:
    """Read a signed object from ``path``.

    :raises OSError: as raised by the filesystem

    """
    with open(path, 'rb') as signed_file:
        return loads(signed_file.read())


def write_file(path: str, signed: Any) -> str:
    """Write a signed object to ``path``.

    :returns: ``path``

    :raises OSError: as raised by the filesystem

    """
    data = dumps(signed).encode(constants.FILE_ENCODING)
    with open(path, 'wb') as signed_file:
        signed_file.write(data)
    return path
