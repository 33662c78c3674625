"""JSON Web Signature signing and verification.

https://tools.ietf.org/html/rfc7515

"""
import json
import logging
from typing import Any
from typing import Collection
from typing import Iterable
from typing import List
from typing import Mapping
from typing import NamedTuple
from typing import Optional
from typing import Tuple
from typing import Union

import josepy as jose

from jwsproto import errors
from jwsproto import jwa
from jwsproto import jwk
from jwsproto import serialization
from jwsproto.header import Header

logger = logging.getLogger(__name__)


class Verification(NamedTuple):
    """Outcome of verifying one signature.

    A failed verification is a normal result, not an error. Truth value
    follows :attr:`verified`, not tuple emptiness.

    :ivar bool verified: Whether the signature is authentic.
    :ivar bytes payload: Decoded payload. Untrusted unless ``verified``.
    :ivar header: Parsed :class:`.Header`, or, if strict verification
        rejected the algorithm, the raw decoded protected header.

    """
    verified: bool
    payload: bytes
    header: Any

    def __bool__(self) -> bool:
        return self.verified


VerifyResult = Union[Verification, List[Verification]]


def signing_input(plaintext: bytes, protected: Optional[str],
                  header: Header) -> bytes:
    """Bytes the signature is computed over.

    https://tools.ietf.org/html/rfc7797#section-3

    :param bytes plaintext: Payload.
    :param str protected: Base64url encoded protected header exactly as
        transmitted, or ``None`` to encode ``header``.
    :param Header header: Parsed protected header. Its ``b64`` member
        decides whether the payload is base64url encoded.

    """
    if protected is None:
        protected = jose.encode_b64jose(header.to_bytes())
    if header.encode_payload:
        payload = jose.b64encode(plaintext)
    else:
        payload = plaintext
    return protected.encode('utf-8') + b'.' + payload


def _prepare(plaintext: bytes, header: Any) -> Tuple[Header, str, bytes]:
    if not isinstance(plaintext, bytes):
        raise errors.InvalidArgument('Payload must be bytes')
    if not isinstance(header, Header):
        header = Header.from_json(header)
    if header.alg is None:
        raise errors.InvalidArgument('Header must carry an algorithm')
    protected = jose.encode_b64jose(header.to_bytes())
    return header, protected, signing_input(plaintext, protected, header)


def _unprotected(key: Any, header: Optional[Mapping[str, Any]]) -> Optional[dict]:
    fields = dict(header or {})
    kid = jwk.key_id(key)
    if kid is not None:
        fields['kid'] = kid
    return fields or None


def _sign_entry(key: Any, header: Header, protected: str, msg: bytes,
                unprotected: Optional[Mapping[str, Any]]) -> serialization.Signature:
    signature = header.alg.sign(key, msg)
    return serialization.Signature(
        protected=protected, header=_unprotected(key, unprotected),
        signature=jose.encode_b64jose(signature))


def _keys(keys: Iterable[Any]) -> List[Any]:
    keys = list(keys)
    if not keys:
        raise errors.InvalidArgument('At least one key is required')
    return keys


def sign(key: Any, plaintext: bytes, header: Any,
         unprotected: Optional[Mapping[str, Any]] = None
         ) -> serialization.Flattened:
    """Sign.

    :param key: Signing key, usually a :class:`.Key`. If it has a key
        identifier, it ends up as ``"kid"`` in the unprotected header.
    :param bytes plaintext: Payload.
    :param header: :class:`.Header` (or its JSON object) with an
        algorithm.
    :param dict unprotected: Unprotected header members.

    :raises errors.BackendSignatureError: if the key does not fit the
        algorithm

    """
    header, protected, msg = _prepare(plaintext, header)
    entry = _sign_entry(key, header, protected, msg, unprotected)
    return serialization.Flattened.from_entry(
        jose.encode_b64jose(plaintext), entry)


def sign_many(keys: Iterable[Any], plaintext: bytes, header: Any,
              unprotected: Optional[Mapping[str, Any]] = None
              ) -> serialization.General:
    """Sign with every key in ``keys``, sharing one protected header.

    :returns: General JWS with one signature per key, in order.

    """
    keys = _keys(keys)
    header, protected, msg = _prepare(plaintext, header)
    return serialization.General(
        payload=jose.encode_b64jose(plaintext),
        signatures=[_sign_entry(key, header, protected, msg, unprotected)
                    for key in keys])


def _decode(flat: serialization.Flattened) -> Tuple[bytes, bytes, bytes]:
    return (serialization.decode_segment(flat.protected),
            serialization.decode_segment(flat.payload),
            serialization.decode_segment(flat.signature))


def _verify_flattened(key: Any, flat: serialization.Flattened) -> Verification:
    protected, payload, signature = _decode(flat)
    header = Header.json_loads(protected)
    msg = signing_input(payload, flat.protected, header)
    return Verification(header.alg.verify(key, msg, signature), payload, header)


def verify(key: Any, signed: Any) -> VerifyResult:
    """Verify.

    :param signed: Compact string, :class:`.Flattened` or
        :class:`.General` object (or their JSON mappings).

    :returns: :class:`Verification` for a single signature, a list of
        them (one per entry, in order) for a general JWS.

    :raises josepy.errors.DeserializationError: if a segment is not canonical
        base64url or a protected header cannot be parsed

    """
    signed = serialization.coerce(signed)
    if isinstance(signed, serialization.General):
        return [_verify_flattened(key, flat) for flat in signed.flattened()]
    return _verify_flattened(key, signed)


def verify_many(keys: Iterable[Any], signed: Any) -> List[Tuple[Any, VerifyResult]]:
    """Verify ``signed`` with every key in ``keys``.

    Accepting any or all of them is up to the caller.

    :returns: ``(key, result)`` pairs, in key order.

    """
    keys = _keys(keys)
    signed = serialization.coerce(signed)
    return [(key, verify(key, signed)) for key in keys]


def _allow_list(allowed: Any) -> Collection[str]:
    if isinstance(allowed, str):
        return frozenset([allowed])
    return frozenset(str(alg) if isinstance(alg, jwa.Algorithm) else alg
                     for alg in allowed)


def _verify_strict_flattened(key: Any, allowed: Collection[str],
                             flat: serialization.Flattened) -> Verification:
    protected, payload, signature = _decode(flat)
    try:
        raw = json.loads(protected)
    except ValueError as error:
        raise jose.DeserializationError(error)

    # Policy first: nothing below may run for an algorithm that was not
    # explicitly allowed.
    alg = raw.get('alg') if isinstance(raw, dict) else None
    if not isinstance(alg, str) or alg not in allowed:
        logger.debug('Algorithm %r not allowed (allowed: %s)',
                     alg, ', '.join(sorted(str(name) for name in allowed)))
        return Verification(False, payload, raw)

    header = Header.from_json(raw)
    msg = signing_input(payload, flat.protected, header)
    return Verification(header.alg.verify(key, msg, signature), payload, header)


def verify_strict(key: Any, allowed: Any, signed: Any) -> VerifyResult:
    """Verify, accepting only algorithms in ``allowed``.

    The raw ``"alg"`` member is checked against ``allowed`` before any
    header parsing or backend dispatch. Objects declaring anything else
    (``"none"`` included) come back unverified, with the raw protected
    header for auditing.

    :param allowed: Algorithm identifiers, e.g. ``['ES256']``.

    """
    allowed = _allow_list(allowed)
    signed = serialization.coerce(signed)
    if isinstance(signed, serialization.General):
        return [_verify_strict_flattened(key, allowed, flat)
                for flat in signed.flattened()]
    return _verify_strict_flattened(key, allowed, signed)


def verify_strict_many(keys: Iterable[Any], allowed: Any,
                       signed: Any) -> List[Tuple[Any, VerifyResult]]:
    """:func:`verify_strict` with every key in ``keys``."""
    keys = _keys(keys)
    signed = serialization.coerce(signed)
    return [(key, verify_strict(key, allowed, signed)) for key in keys]
