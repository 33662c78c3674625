"""JWS errors."""
from typing import Any
from typing import Sequence

from josepy import errors as jose_errors


class Error(Exception):
    """Generic JWS error."""


class InvalidArgument(Error, ValueError):
    """Malformed signed object, wrong shape or empty key/signature list."""


class MissingRequiredField(Error, jose_errors.DeserializationError):
    """Header is missing a mandatory member.

    :ivar tuple fields: Names of the missing members.

    """
    def __init__(self, fields: Sequence[str], *args: Any) -> None:
        super().__init__(*args)
        self.fields = tuple(fields)

    def __str__(self) -> str:
        return 'Missing required header field(s): {0}'.format(
            ', '.join(self.fields))


class UnsupportedAlgorithm(Error):
    """No backend recognizes the requested algorithm.

    :ivar alg: Algorithm identifier as found in the header, not
        necessarily a string.

    """
    def __init__(self, alg: Any, *args: Any) -> None:
        super().__init__(*args)
        self.alg = alg

    def __str__(self) -> str:
        return 'Unsupported algorithm: {0!r}'.format(self.alg)


class BackendSignatureError(Error):
    """Signature backend refused the key or the message."""
