"""JWS command line interface."""
import argparse
import json
import logging
import sys
from typing import Any
from typing import List
from typing import Optional
from typing import Tuple

import josepy as jose

from jwsproto import constants
from jwsproto import errors
from jwsproto import jwa
from jwsproto import jws
from jwsproto import serialization
from jwsproto.header import Header
from jwsproto.jwk import Key

logger = logging.getLogger(__name__)


class CLI:
    """JWS CLI."""

    @classmethod
    def _load_key(cls, args: argparse.Namespace) -> Key:
        key = Key.load(args.key.read(), kid=args.kid)
        args.key.close()
        return key

    @classmethod
    def sign(cls, args: argparse.Namespace) -> int:
        """Sign payload read from stdin."""
        key = cls._load_key(args)
        header = Header.new(args.alg, b64=False if args.no_b64 else None,
                            fields=dict(args.header or ()))
        signed = jws.sign(key, sys.stdin.buffer.read(), header)

        if args.compact:
            print(serialization.compact(signed))
        else:  # JSON
            print(signed.json_dumps(**constants.PRETTY_JSON_DUMPS_PARAMS))
        return 0

    @classmethod
    def verify(cls, args: argparse.Namespace) -> int:
        """Verify signed object read from stdin, print payload if valid."""
        key = cls._load_key(args).public_key()
        signed = serialization.loads(sys.stdin.buffer.read())

        if args.allow:
            result = jws.verify_strict(key, args.allow, signed)
        else:
            result = jws.verify(key, signed)

        results = result if isinstance(result, list) else [result]
        if not all(results):
            logger.debug('Signature(s) did not verify: %r', results)
            return 1
        sys.stdout.buffer.write(results[0].payload)
        return 0

    @classmethod
    def peek(cls, args: argparse.Namespace) -> int:
        """Print a segment of the signed object without verifying it."""
        signed = serialization.loads(sys.stdin.buffer.read())
        peekers = {
            'payload': serialization.peek_payload,
            'protected': serialization.peek_protected,
            'signature': serialization.peek_signature,
        }
        sys.stdout.buffer.write(peekers[args.segment](signed))
        return 0

    @classmethod
    def _alg_type(cls, arg: str) -> jwa.Algorithm:
        try:
            return jwa.Algorithm.from_name(arg)
        except errors.UnsupportedAlgorithm as error:
            raise argparse.ArgumentTypeError(str(error))

    @classmethod
    def _header_type(cls, arg: str) -> Tuple[str, Any]:
        name, sep, value = arg.partition('=')
        if not sep or not name:
            raise argparse.ArgumentTypeError(
                'expected NAME=VALUE, got {0!r}'.format(arg))
        try:
            return name, json.loads(value)
        except ValueError:
            return name, value

    @classmethod
    def run(cls, args: Optional[List[str]] = None) -> int:
        """Parse arguments and sign/verify."""
        parser = argparse.ArgumentParser(prog='jwsproto')
        parser.add_argument('-v', '--verbose', action='store_true')

        subparsers = parser.add_subparsers(dest='command', required=True)
        parser_sign = subparsers.add_parser('sign')
        parser_sign.set_defaults(func=cls.sign)
        parser_sign.add_argument(
            '-k', '--key', type=argparse.FileType('rb'), required=True)
        parser_sign.add_argument('--kid')
        parser_sign.add_argument(
            '-a', '--alg', type=cls._alg_type,
            default=jwa.Algorithm.from_name(constants.DEFAULT_ALGORITHM))
        parser_sign.add_argument(
            '-H', '--header', action='append', type=cls._header_type,
            help='extra protected header member, NAME=VALUE')
        parser_sign.add_argument(
            '--no-b64', action='store_true',
            help='sign the payload unencoded (RFC 7797)')
        parser_sign.add_argument('--compact', action='store_true')

        parser_verify = subparsers.add_parser('verify')
        parser_verify.set_defaults(func=cls.verify, kid=None)
        parser_verify.add_argument(
            '-k', '--key', type=argparse.FileType('rb'), required=True)
        parser_verify.add_argument(
            '--allow', action='append', metavar='ALG',
            help='accept only these algorithms (repeatable)')

        parser_peek = subparsers.add_parser('peek')
        parser_peek.set_defaults(func=cls.peek)
        parser_peek.add_argument(
            'segment', nargs='?', default='payload',
            choices=('payload', 'protected', 'signature'))

        parsed = parser.parse_args(args)
        logging.basicConfig(
            level=logging.DEBUG if parsed.verbose else logging.WARNING,
            format='%(name)s:%(levelname)s: %(message)s')

        try:
            return parsed.func(parsed)
        except (errors.Error, jose.Error) as error:
            logger.debug('Command failed', exc_info=True)
            print('Error: {0}'.format(error), file=sys.stderr)
            return 2


def main(args: Optional[List[str]] = None) -> int:
    """Console script entry point."""
    return CLI.run(args)


if __name__ == '__main__':
    sys.exit(main())  # pragma: no cover
