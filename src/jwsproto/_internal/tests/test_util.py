"""Test utilities.

.. warning:: This module is not part of the public API.

"""
import importlib.resources
from typing import Optional

import josepy as jose

from jwsproto.jwk import Key


def load_vector(*names: str) -> bytes:
    """Load contents of a test vector."""
    vector_ref = importlib.resources.files(__package__).joinpath('testdata', *names)
    return vector_ref.read_bytes()


def load_key(name: str, kid: Optional[str] = None) -> Key:
    """Load a key from the test vectors."""
    return Key.load(load_vector(name), kid=kid)


RSA_KEY = load_key('rsa2048_key.pem')
RSA_OTHER_KEY = load_key('rsa2048_other_key.pem')
EC_P256_KEY = load_key('ec_p256_key.pem')
EC_P384_KEY = load_key('ec_p384_key.pem')
EC_P521_KEY = load_key('ec_p521_key.pem')
HMAC_KEY = Key.symmetric(load_vector('hmac_key.bin'))
HMAC_OTHER_KEY = Key.symmetric(b'another secret')

KEYS_BY_ALG = {
    'HS256': HMAC_KEY, 'HS384': HMAC_KEY, 'HS512': HMAC_KEY,
    'RS256': RSA_KEY, 'RS384': RSA_KEY, 'RS512': RSA_KEY,
    'PS256': RSA_KEY, 'PS384': RSA_KEY, 'PS512': RSA_KEY,
    'ES256': EC_P256_KEY, 'ES384': EC_P384_KEY, 'ES512': EC_P521_KEY,
}
"""Matching signing key for every supported algorithm but "none"."""


def b64(data: bytes) -> str:
    """JOSE Base64 encode to text."""
    return jose.encode_b64jose(data)


def unsecured_compact(payload: bytes, protected: bytes = b'{"alg":"none"}') -> str:
    """Compact JWS with an empty signature."""
    return '{0}.{1}.'.format(b64(protected), b64(payload))
