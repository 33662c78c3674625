"""JSON Web Signature (JWS).

This package implements the protocol layer of `JSON Web Signature`_:
compact and JSON (flattened and general) serializations, the signing
input (including `unencoded payloads`_), multi-key signing and
verification, and strict verification against an algorithm allow-list.

Signature primitives come from `cryptography`, keys and JOSE Base64
from `josepy`.

.. _`JSON Web Signature`: https://tools.ietf.org/html/rfc7515

.. _`unencoded payloads`: https://tools.ietf.org/html/rfc7797

"""
# flake8: noqa
from jwsproto.errors import (
    BackendSignatureError,
    Error,
    InvalidArgument,
    MissingRequiredField,
    UnsupportedAlgorithm,
)

from jwsproto.header import Header

from jwsproto.jwa import (
    ALGORITHMS,
    Algorithm,
    Backend,
    resolve,
)

from jwsproto.jwk import Key

from jwsproto.jws import (
    Verification,
    sign,
    sign_many,
    signing_input,
    verify,
    verify_many,
    verify_strict,
    verify_strict_many,
)

from jwsproto.serialization import (
    Flattened,
    General,
    Signature,
    compact,
    decode_segment,
    expand,
    peek,
    peek_payload,
    peek_protected,
    peek_signature,
    read_file,
    write_file,
)
