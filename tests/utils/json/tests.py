import datetime
import uuid

from kestrel.utils import json, merge_dicts, get_auth_header
from kestrel.utils.testutils import TestCase


class JSONTest(TestCase):
    def test_uuid(self):
        res = uuid.uuid4()
        self.assertEqual(json.dumps(res), '"%s"' % res.hex)

    def test_datetime(self):
        res = datetime.datetime(day=1, month=1, year=2011, hour=1, minute=1, second=1)
        self.assertEqual(json.dumps(res), '"2011-01-01T01:01:01.000000Z"')

    def test_set(self):
        res = set(['foo'])
        self.assertEqual(json.dumps(res), '["foo"]')

    def test_bytes(self):
        self.assertEqual(json.dumps(b'foo'), '"foo"')

    def test_unknown_type(self):

        class Unknown(object):
            def __repr__(self):
                return 'Unknown object'

        obj = Unknown()
        self.assertEqual(json.dumps(obj), '"Unknown object"')

    def test_non_string_keys(self):
        self.assertEqual(json.loads(json.dumps({(1, 2): 'foo'})), {'(1, 2)': 'foo'})

    def test_nested_non_string_keys(self):
        value = {'extra': {('a', 'b'): 1, 'items': [{frozenset([1]): 2}]}}
        self.assertEqual(json.loads(json.dumps(value)), {
            'extra': {"('a', 'b')": 1, 'items': [{'frozenset({1})': 2}]},
        })

    def test_uuid_key(self):
        key = uuid.uuid4()
        self.assertEqual(json.loads(json.dumps({'ids': {key: 1}})), {'ids': {key.hex: 1}})


class UtilsTest(TestCase):
    def test_merge_dicts(self):
        self.assertEqual(merge_dicts({'a': 1}, None, {'a': 2, 'b': 3}), {'a': 2, 'b': 3})

    def test_get_auth_header(self):
        header = get_auth_header(protocol=7, timestamp=1, client='kestrel/1',
                                 api_key='public')
        self.assertEqual(header, 'Sentry sentry_timestamp=1, sentry_client=kestrel/1, '
                                 'sentry_version=7, sentry_key=public')
