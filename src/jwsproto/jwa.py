"""JSON Web Signature algorithms.

https://tools.ietf.org/html/rfc7518#section-3

Every ``"alg"`` value is served by one of five backends. The backend is
chosen by a fixed prefix table (:data:`PREFIXES`), see :func:`resolve`.

"""
import abc
import logging
from typing import Any
from typing import Dict
from typing import Mapping
from typing import NamedTuple
from typing import Tuple

import cryptography.exceptions
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import hmac
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric import utils as asym_utils

from jwsproto import constants
from jwsproto import errors
from jwsproto import jwk

logger = logging.getLogger(__name__)


def _public(key: Any) -> Any:
    # private keys of every asymmetric type expose private_numbers()
    return key.public_key() if hasattr(key, 'private_numbers') else key


class Backend(abc.ABC):
    """Signature backend for a family of algorithms.

    Subclasses list the algorithm identifiers they support in
    :attr:`algorithms`, mapped to whatever parameters they need.

    """
    name = NotImplemented
    algorithms: Mapping[str, Any] = {}

    def params(self, alg: Any) -> Any:
        """Parameters of ``alg``.

        :raises errors.UnsupportedAlgorithm: if ``alg`` is not served by
            this backend

        """
        try:
            return self.algorithms[alg]
        except (KeyError, TypeError):
            raise errors.UnsupportedAlgorithm(alg) from None

    def parse_fields(self, fields: Mapping[str, Any]) -> Tuple[str, Dict[str, Any]]:
        """Extract the algorithm identifier from header ``fields``.

        :returns: Algorithm identifier and the fields this backend did
            not consume.

        """
        remaining = dict(fields)
        alg = remaining.pop('alg', None)
        self.params(alg)
        return alg, remaining

    def render_fields(self, alg: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Inverse of :meth:`parse_fields`."""
        self.params(alg)
        rendered: Dict[str, Any] = {'alg': alg}
        rendered.update((name, value) for name, value in fields.items()
                        if name != 'alg')
        return rendered

    @abc.abstractmethod
    def sign(self, key: Any, msg: bytes, alg: str) -> bytes:  # pragma: no cover
        """Sign the ``msg`` using ``key``."""
        raise NotImplementedError()

    @abc.abstractmethod
    def verify(self, key: Any, msg: bytes, sig: bytes, alg: str) -> bool:  # pragma: no cover
        """Verify the ``msg`` and ``sig`` using ``key``."""
        raise NotImplementedError()

    def __repr__(self) -> str:
        return '<{0} backend>'.format(self.name)


class _HMAC(Backend):

    name = 'hmac'
    algorithms = {
        'HS256': hashes.SHA256,
        'HS384': hashes.SHA384,
        'HS512': hashes.SHA512,
    }

    def _mac(self, key: Any, alg: str) -> hmac.HMAC:
        hash_ = self.params(alg)()
        try:
            return hmac.HMAC(jwk.unwrap(key), hash_)
        except TypeError as error:
            logger.debug(error, exc_info=True)
            raise errors.BackendSignatureError(
                '{0} requires a symmetric key'.format(alg)) from error

    def sign(self, key: Any, msg: bytes, alg: str) -> bytes:
        signer = self._mac(key, alg)
        signer.update(msg)
        return signer.finalize()

    def verify(self, key: Any, msg: bytes, sig: bytes, alg: str) -> bool:
        verifier = self._mac(key, alg)
        verifier.update(msg)
        try:
            verifier.verify(sig)
        except cryptography.exceptions.InvalidSignature as error:
            logger.debug(error, exc_info=True)
            return False
        else:
            return True


class _RSA(Backend):
    # pylint: disable=abstract-method

    @abc.abstractmethod
    def padding(self, hash_: hashes.HashAlgorithm) -> padding.AsymmetricPadding:
        """Padding scheme to use with ``hash_``."""
        raise NotImplementedError()  # pragma: no cover

    def sign(self, key: Any, msg: bytes, alg: str) -> bytes:
        hash_ = self.params(alg)()
        try:
            return jwk.unwrap(key).sign(msg, self.padding(hash_), hash_)
        except AttributeError as error:
            logger.debug(error, exc_info=True)
            raise errors.BackendSignatureError(
                'Key cannot be used for {0} signing'.format(alg)) from error
        except (TypeError, ValueError) as error:  # digest too large, wrong key type
            logger.debug(error, exc_info=True)
            raise errors.BackendSignatureError(str(error)) from error

    def verify(self, key: Any, msg: bytes, sig: bytes, alg: str) -> bool:
        hash_ = self.params(alg)()
        try:
            _public(jwk.unwrap(key)).verify(sig, msg, self.padding(hash_), hash_)
        except cryptography.exceptions.InvalidSignature as error:
            logger.debug(error, exc_info=True)
            return False
        except (AttributeError, TypeError, ValueError) as error:
            logger.debug(error, exc_info=True)
            raise errors.BackendSignatureError(
                'Key cannot be used for {0} verification'.format(alg)) from error
        else:
            return True


class _RSAPKCS1v15(_RSA):

    name = 'rsa-pkcs1-v1_5'
    algorithms = {
        'RS256': hashes.SHA256,
        'RS384': hashes.SHA384,
        'RS512': hashes.SHA512,
    }

    def padding(self, hash_: hashes.HashAlgorithm) -> padding.AsymmetricPadding:
        return padding.PKCS1v15()


class _RSAPSS(_RSA):

    name = 'rsa-pss'
    algorithms = {
        'PS256': hashes.SHA256,
        'PS384': hashes.SHA384,
        'PS512': hashes.SHA512,
    }

    def padding(self, hash_: hashes.HashAlgorithm) -> padding.AsymmetricPadding:
        # RFC 7518, section 3.5: salt as long as the digest
        return padding.PSS(mgf=padding.MGF1(hash_),
                           salt_length=hash_.digest_size)


class _ECDSA(Backend):

    name = 'ecdsa'
    algorithms = {
        'ES256': (hashes.SHA256, 'secp256r1'),
        'ES384': (hashes.SHA384, 'secp384r1'),
        'ES512': (hashes.SHA512, 'secp521r1'),
    }

    @staticmethod
    def _coordinate_size(key: Any, alg: str, curve_name: str) -> int:
        curve = getattr(key, 'curve', None)
        if curve is None or curve.name != curve_name:
            raise errors.BackendSignatureError(
                '{0} requires a {1} key'.format(alg, curve_name))
        return (curve.key_size + 7) // 8

    def sign(self, key: Any, msg: bytes, alg: str) -> bytes:
        hash_cls, curve_name = self.params(alg)
        key = jwk.unwrap(key)
        size = self._coordinate_size(key, alg, curve_name)
        try:
            der = key.sign(msg, ec.ECDSA(hash_cls()))
        except (AttributeError, TypeError, ValueError) as error:
            logger.debug(error, exc_info=True)
            raise errors.BackendSignatureError(
                'Key cannot be used for {0} signing'.format(alg)) from error
        # JWS carries R || S, not the DER structure
        r, s = asym_utils.decode_dss_signature(der)
        return r.to_bytes(size, 'big') + s.to_bytes(size, 'big')

    def verify(self, key: Any, msg: bytes, sig: bytes, alg: str) -> bool:
        hash_cls, curve_name = self.params(alg)
        public = _public(jwk.unwrap(key))
        size = self._coordinate_size(public, alg, curve_name)
        if len(sig) != 2 * size:
            logger.debug('%s signature has %d bytes, expected %d',
                         alg, len(sig), 2 * size)
            return False
        der = asym_utils.encode_dss_signature(
            int.from_bytes(sig[:size], 'big'), int.from_bytes(sig[size:], 'big'))
        try:
            public.verify(der, msg, ec.ECDSA(hash_cls()))
        except cryptography.exceptions.InvalidSignature as error:
            logger.debug(error, exc_info=True)
            return False
        except (AttributeError, TypeError) as error:
            logger.debug(error, exc_info=True)
            raise errors.BackendSignatureError(
                'Key cannot be used for {0} verification'.format(alg)) from error
        else:
            return True


class _None(Backend):
    """Unsecured JWS.

    Verification always succeeds. Whether unsecured objects may be
    produced or accepted is up to the caller.

    """
    name = 'none'
    algorithms = {constants.NONE_ALGORITHM: None}

    def sign(self, key: Any, msg: bytes, alg: str) -> bytes:
        self.params(alg)
        return b''

    def verify(self, key: Any, msg: bytes, sig: bytes, alg: str) -> bool:
        self.params(alg)
        return True


ECDSA = _ECDSA()
HMAC = _HMAC()
RSA_PSS = _RSAPSS()
RSA_PKCS1_V1_5 = _RSAPKCS1v15()
NONE = _None()

PREFIXES: Tuple[Tuple[str, Backend], ...] = (
    ('ES', ECDSA),
    ('HS', HMAC),
    ('PS', RSA_PSS),
    ('RS', RSA_PKCS1_V1_5),
)
"""Algorithm prefix to backend table. Prefixes are disjoint."""

BACKENDS: Tuple[Backend, ...] = tuple(
    backend for _, backend in PREFIXES) + (NONE,)

ALGORITHMS: Tuple[str, ...] = tuple(
    alg for backend in BACKENDS for alg in backend.algorithms)
"""All supported algorithm identifiers."""


def resolve(alg: Any) -> Backend:
    """Select the backend for a raw ``"alg"`` header value.

    :raises errors.UnsupportedAlgorithm: if no prefix matches

    """
    if not isinstance(alg, str):
        raise errors.UnsupportedAlgorithm(alg)
    if alg == constants.NONE_ALGORITHM:
        return NONE
    for prefix, backend in PREFIXES:
        if alg.startswith(prefix):
            return backend
    raise errors.UnsupportedAlgorithm(alg)


class Algorithm(NamedTuple):
    """Backend bound to one of its algorithm identifiers."""
    backend: Backend
    name: str

    @classmethod
    def from_name(cls, alg: Any) -> 'Algorithm':
        """Resolve ``alg`` into a binding.

        :raises errors.UnsupportedAlgorithm: if ``alg`` is unknown

        """
        backend = resolve(alg)
        name, _ = backend.parse_fields({'alg': alg})
        return cls(backend, name)

    def sign(self, key: Any, msg: bytes) -> bytes:
        """Sign the ``msg`` using ``key``."""
        return self.backend.sign(key, msg, self.name)

    def verify(self, key: Any, msg: bytes, sig: bytes) -> bool:
        """Verify the ``msg`` and ``sig`` using ``key``."""
        return self.backend.verify(key, msg, sig, self.name)

    def __str__(self) -> str:
        return self.name
