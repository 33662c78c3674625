"""Tests for jwsproto.serialization."""
import json
import os
import shutil
import sys
import tempfile
import unittest

import josepy as jose
import pytest

from jwsproto import errors
from jwsproto._internal.tests import test_util

PROTECTED = test_util.b64(b'{"alg":"HS256"}')
PAYLOAD = test_util.b64(b'hello')
COMPACT = '{0}.{1}.c2ln'.format(PROTECTED, PAYLOAD)
COMPACT2 = '{0}.{1}.c2lnMg'.format(PROTECTED, PAYLOAD)
COMPACT_OTHER = '{0}.{1}.c2lnMw'.format(PROTECTED, test_util.b64(b'bye'))


class ExpandTest(unittest.TestCase):
    """Tests for jwsproto.serialization.expand."""

    @classmethod
    def _call(cls, signed):
        from jwsproto.serialization import expand
        return expand(signed)

    def test_compact(self):
        from jwsproto.serialization import Flattened
        flat = self._call(COMPACT)
        assert flat == Flattened(payload=PAYLOAD, protected=PROTECTED, signature='c2ln')
        assert flat.header is None

    def test_bytes(self):
        assert self._call(COMPACT.encode()) == self._call(COMPACT)

    def test_wrong_segment_count(self):
        for compact in ('a.b', 'a.b.c.d', '', 'abc'):
            with pytest.raises(errors.InvalidArgument):
                self._call(compact)

    def test_not_a_string(self):
        with pytest.raises(errors.InvalidArgument):
            self._call(42)
        with pytest.raises(errors.InvalidArgument):
            self._call([COMPACT, 42])

    def test_merge(self):
        from jwsproto.serialization import General
        general = self._call([COMPACT, COMPACT2])
        assert isinstance(general, General)
        assert general.payload == PAYLOAD
        assert [entry.signature for entry in general.signatures] == ['c2ln', 'c2lnMg']
        assert all(entry.header is None for entry in general.signatures)

    def test_no_merge(self):
        from jwsproto.serialization import Flattened
        expanded = self._call([COMPACT, COMPACT_OTHER])
        assert isinstance(expanded, list)
        assert expanded == [self._call(COMPACT), self._call(COMPACT_OTHER)]
        assert all(isinstance(flat, Flattened) for flat in expanded)

    def test_single_item_list(self):
        from jwsproto.serialization import General
        assert isinstance(self._call([COMPACT]), General)

    def test_empty_list(self):
        assert self._call([]) == []

    def test_malformed_payload(self):
        bad = '{0}.{1}!.c2ln'.format(PROTECTED, PAYLOAD)
        with pytest.raises(jose.DeserializationError):
            self._call([COMPACT, bad])


class DecodeSegmentTest(unittest.TestCase):
    """Tests for jwsproto.serialization.decode_segment."""

    @classmethod
    def _call(cls, segment):
        from jwsproto.serialization import decode_segment
        return decode_segment(segment)

    def test_canonical(self):
        assert self._call('aGVsbG8') == b'hello'
        assert self._call('') == b''
        assert self._call('-_8') == b'\xfb\xff'

    def test_rejected(self):
        for segment in ('aGVsbG8=', 'aGVsbG8!', 'aGV+bG8', 'aGV/bG8', 'aGV sbG8',
                        'aGVsbG8xx', 'aGVsbG9', 'a\u00e9', None, b'aGVsbG8'):
            with pytest.raises(jose.DeserializationError):
                self._call(segment)


class CompactTest(unittest.TestCase):
    """Tests for jwsproto.serialization.compact."""

    @classmethod
    def _call(cls, signed):
        from jwsproto.serialization import compact
        return compact(signed)

    def test_inverse(self):
        from jwsproto.serialization import expand
        assert self._call(expand(COMPACT)) == COMPACT

    def test_general(self):
        from jwsproto.serialization import expand
        assert self._call(expand([COMPACT, COMPACT2])) == [COMPACT, COMPACT2]

    def test_mapping(self):
        jobj = {'payload': PAYLOAD, 'protected': PROTECTED, 'signature': 'c2ln'}
        assert self._call(jobj) == COMPACT

    def test_list(self):
        from jwsproto.serialization import expand
        assert self._call(expand([COMPACT, COMPACT_OTHER])) == [COMPACT, COMPACT_OTHER]

    def test_list_with_general(self):
        from jwsproto.serialization import expand
        with pytest.raises(errors.InvalidArgument):
            self._call([expand([COMPACT, COMPACT2])])

    def test_missing_field(self):
        for name in ('payload', 'protected', 'signature'):
            jobj = {'payload': PAYLOAD, 'protected': PROTECTED, 'signature': 'c2ln'}
            del jobj[name]
            with pytest.raises(errors.InvalidArgument):
                self._call(jobj)

    def test_bad_arg(self):
        with pytest.raises(errors.InvalidArgument):
            self._call(42)
        with pytest.raises(errors.InvalidArgument):
            self._call(COMPACT)


class JSONTest(unittest.TestCase):
    """Tests for JSON (de)serialization of signed objects."""

    def test_flattened(self):
        from jwsproto.serialization import Flattened
        from jwsproto.serialization import from_json
        jobj = {'payload': PAYLOAD, 'protected': PROTECTED,
                'header': {'kid': 'a'}, 'signature': 'c2ln'}
        flat = from_json(jobj)
        assert isinstance(flat, Flattened)
        assert flat.header == {'kid': 'a'}
        assert flat.to_json() == jobj
        assert json.loads(flat.json_dumps()) == jobj

    def test_general(self):
        from jwsproto.serialization import General
        from jwsproto.serialization import from_json
        jobj = {'payload': PAYLOAD, 'signatures': [
            {'protected': PROTECTED, 'signature': 'c2ln'},
            {'protected': PROTECTED, 'header': {'kid': 'b'}, 'signature': 'c2lnMg'},
        ]}
        general = from_json(jobj)
        assert isinstance(general, General)
        assert general.to_json() == jobj
        assert [flat.signature for flat in general.flattened()] == ['c2ln', 'c2lnMg']

    def test_empty_signatures(self):
        from jwsproto.serialization import from_json
        with pytest.raises(errors.InvalidArgument):
            from_json({'payload': PAYLOAD, 'signatures': []})

    def test_mixed(self):
        from jwsproto.serialization import from_json
        with pytest.raises(errors.InvalidArgument):
            from_json({'payload': PAYLOAD, 'protected': PROTECTED,
                       'signature': 'c2ln', 'signatures': []})

    def test_malformed(self):
        from jwsproto.serialization import from_json
        for jobj in ([], {'payload': PAYLOAD, 'signatures': {}},
                     {'payload': PAYLOAD, 'signatures': ['x']},
                     {'payload': 1, 'protected': PROTECTED, 'signature': 'c2ln'},
                     {'payload': PAYLOAD, 'protected': PROTECTED,
                      'header': 'kid', 'signature': 'c2ln'}):
            with pytest.raises(errors.InvalidArgument):
                from_json(jobj)

    def test_immutable(self):
        from jwsproto.serialization import expand
        flat = expand(COMPACT)
        with pytest.raises(AttributeError):
            flat.payload = 'x'
        assert flat.update(signature='eA').signature == 'eA'
        assert flat.signature == 'c2ln'


class PeekTest(unittest.TestCase):
    """Tests for jwsproto.serialization.peek_*."""

    def test_compact(self):
        from jwsproto import serialization
        assert serialization.peek(COMPACT) == b'hello'
        assert serialization.peek_payload(COMPACT) == b'hello'
        assert serialization.peek_protected(COMPACT) == b'{"alg":"HS256"}'
        assert serialization.peek_signature(COMPACT) == b'sig'

    def test_expanded(self):
        from jwsproto import serialization
        flat = serialization.expand(COMPACT)
        assert serialization.peek_payload(flat) == b'hello'
        assert serialization.peek_signature(flat.to_json()) == b'sig'

    def test_general(self):
        from jwsproto import serialization
        general = serialization.expand([COMPACT, COMPACT2])
        assert serialization.peek_payload(general) == b'hello'
        with pytest.raises(errors.InvalidArgument):
            serialization.peek_protected(general)
        with pytest.raises(errors.InvalidArgument):
            serialization.peek_signature(general)

    def test_list(self):
        from jwsproto import serialization
        with pytest.raises(errors.InvalidArgument):
            serialization.peek_payload([COMPACT])

    def test_malformed(self):
        from jwsproto import serialization
        with pytest.raises(errors.InvalidArgument):
            serialization.peek_payload('a.b')

    def test_malformed_base64url(self):
        from jwsproto import serialization
        bad = '{0}=.{1}.c2l+'.format(PROTECTED, PAYLOAD)
        for peek in (serialization.peek_protected, serialization.peek_signature):
            with pytest.raises(jose.DeserializationError):
                peek(bad)
        assert serialization.peek_payload(bad) == b'hello'


class FileTest(unittest.TestCase):
    """Tests for jwsproto.serialization.read_file and write_file."""

    def setUp(self):
        self.tempdir = tempfile.mkdtemp()
        self.path = os.path.join(self.tempdir, 'signed')

    def tearDown(self):
        shutil.rmtree(self.tempdir)

    def test_compact(self):
        from jwsproto import serialization
        assert serialization.write_file(self.path, COMPACT) == self.path
        assert serialization.read_file(self.path) == COMPACT

    def test_json(self):
        from jwsproto import serialization
        general = serialization.expand([COMPACT, COMPACT2])
        serialization.write_file(self.path, general)
        assert serialization.read_file(self.path) == general

    def test_trailing_newline(self):
        from jwsproto import serialization
        with open(self.path, 'w') as signed_file:
            signed_file.write(COMPACT + '\n')
        assert serialization.read_file(self.path) == COMPACT

    def test_bad_json(self):
        from jwsproto import serialization
        with open(self.path, 'w') as signed_file:
            signed_file.write('{"payload": ')
        with pytest.raises(jose.DeserializationError):
            serialization.read_file(self.path)

    def test_not_utf8(self):
        from jwsproto import serialization
        with open(self.path, 'wb') as signed_file:
            signed_file.write(b'\xff\xfe.\xff')
        with pytest.raises(errors.InvalidArgument):
            serialization.read_file(self.path)

    def test_missing_file(self):
        from jwsproto import serialization
        with pytest.raises(FileNotFoundError):
            serialization.read_file(self.path)

    def test_missing_directory(self):
        from jwsproto import serialization
        with pytest.raises(OSError):
            serialization.write_file(os.path.join(self.path, 'x', 'y'), COMPACT)

    def test_write_invalid(self):
        from jwsproto import serialization
        with pytest.raises(errors.InvalidArgument):
            serialization.write_file(self.path, 'a.b')
        assert not os.path.exists(self.path)


if __name__ == '__main__':
    sys.exit(pytest.main(sys.argv[1:] + [__file__]))  # pragma: no cover
