"""
kestrel.utils.json
~~~~~~~~~~~~~~~~~~

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""
import datetime
import json
import uuid
from collections.abc import Mapping


class BetterJSONEncoder(json.JSONEncoder):
    ENCODER_BY_TYPE = {
        uuid.UUID: lambda o: o.hex,
        datetime.datetime: lambda o: o.strftime('%Y-%m-%dT%H:%M:%S.%fZ'),
        set: list,
        frozenset: list,
        bytes: lambda o: o.decode('utf-8', errors='replace')
    }

    def encode(self, obj):
        super_encode = super(BetterJSONEncoder, self).encode
        try:
            return super_encode(obj)
        except TypeError:
            # non-string keys make the C encoder bail out before ``default``
            # gets a chance to run
            return super_encode(self.encode_keys(obj))

    def encode_keys(self, value):
        if isinstance(value, Mapping):
            return dict((self.encode_key(key), self.encode_keys(val))
                        for key, val in value.items())
        elif isinstance(value, (list, tuple)):
            return [self.encode_keys(item) for item in value]
        return value

    def encode_key(self, key):
        if key is None or isinstance(key, (str, int, float, bool)):
            return key
        rv = self.default(key)
        if not isinstance(rv, str):
            return repr(key)
        return rv

    def default(self, obj):
        try:
            encoder = self.ENCODER_BY_TYPE[type(obj)]
        except KeyError:
            try:
                return super(BetterJSONEncoder, self).default(obj)
            except TypeError:
                return repr(obj)
        return encoder(obj)


def dumps(value, **kwargs):
    return json.dumps(value, cls=BetterJSONEncoder, **kwargs)


def loads(value, **kwargs):
    return json.loads(value, **kwargs)
