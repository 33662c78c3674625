"""JSON Web Keys with an optional key identifier."""
import logging
from typing import Any
from typing import Mapping
from typing import Optional

import josepy as jose

logger = logging.getLogger(__name__)


class Key:
    """Signing or verification key.

    ``josepy`` keys carry no ``kid`` member, so this class pairs one with
    an optional identifier. When signing, the identifier is copied into
    the unprotected header of the produced signature.

    :ivar jwk: Wrapped key.
    :type jwk: `josepy.JWK`
    :ivar str kid: Key identifier, or ``None``.

    """
    def __init__(self, jwk: jose.JWK, kid: Optional[str] = None) -> None:
        self.jwk = jwk
        self.kid = kid

    @classmethod
    def load(cls, data: bytes, password: Optional[bytes] = None,
             kid: Optional[str] = None) -> 'Key':
        """Load serialized key.

        :param bytes data: Public or private key serialized as PEM or DER.
            Anything else is taken as a symmetric (HMAC) secret.
        :param bytes password: Optional password.
        :param str kid: Optional key identifier.

        :rtype: `Key`

        """
        jwk = jose.JWK.load(data, password)
        logger.debug('Loaded %s key (kid=%r)', jwk.__class__.__name__, kid)
        return cls(jwk, kid=kid)

    @classmethod
    def symmetric(cls, secret: bytes, kid: Optional[str] = None) -> 'Key':
        """Wrap a raw HMAC secret."""
        return cls(jose.JWKOct(key=secret), kid=kid)

    @property
    def key(self) -> Any:
        """Underlying `cryptography` key, or bytes for symmetric keys."""
        return self.jwk.key

    def public_key(self) -> 'Key':
        """Key with the public part only, keeping the identifier.

        For symmetric keys, this is an equivalent key.

        """
        return type(self)(self.jwk.public_key(), kid=self.kid)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Key):
            return NotImplemented
        return self.jwk == other.jwk and self.kid == other.kid

    def __hash__(self) -> int:
        return hash((self.__class__, self.jwk, self.kid))

    def __repr__(self) -> str:
        return '{0}({1!r}, kid={2!r})'.format(
            self.__class__.__name__, self.jwk, self.kid)


def key_id(key: Any) -> Optional[str]:
    """Find the key identifier of ``key``, if it has one.

    Works with `Key`, plain mappings holding a ``"kid"`` member and any
    object with a ``kid`` attribute.

    """
    if isinstance(key, Key):
        return key.kid
    if isinstance(key, Mapping) and not isinstance(key, jose.JWK):
        return key.get('kid')
    return getattr(key, 'kid', None)


def unwrap(key: Any) -> Any:
    """Return the raw key material a signature backend operates on."""
    if isinstance(key, Key):
        key = key.jwk
    if isinstance(key, jose.JWK):
        return key.key
    return key
