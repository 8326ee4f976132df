"""
kestrel.conf.remote
~~~~~~~~~~~~~~~~~~~

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""
from urllib.parse import urlparse

from kestrel.exceptions import InvalidDsn

ERR_UNKNOWN_SCHEME = 'Unsupported Kestrel DSN scheme: {0} ({1})'

SUPPORTED_SCHEMES = ('http', 'https')


class RemoteConfig(object):
    def __init__(self, base_url=None, project=None, public_key=None,
                 secret_key=None):
        if base_url:
            base_url = base_url.rstrip('/')
            store_endpoint = '%s/api/%s/store/' % (base_url, project)
            session_endpoint = '%s/api/%s/session/' % (base_url, project)
        else:
            store_endpoint = None
            session_endpoint = None

        self.base_url = base_url
        self.project = project
        self.public_key = public_key
        self.secret_key = secret_key
        self.store_endpoint = store_endpoint
        self.session_endpoint = session_endpoint

    def __str__(self):
        return str(self.base_url)

    def __repr__(self):
        return '<%s: %s>' % (type(self).__name__, self.get_public_dsn())

    def is_active(self):
        return all([self.base_url, self.project, self.public_key])

    def get_endpoint(self, kind):
        if kind == 'session':
            return self.session_endpoint
        return self.store_endpoint

    def get_public_dsn(self):
        url = urlparse(self.base_url)
        netloc = url.hostname
        if url.port:
            netloc += ':%s' % url.port
        return '//%s@%s%s/%s' % (self.public_key, netloc, url.path, self.project)

    @classmethod
    def from_string(cls, value):
        value = value.strip()
        url = urlparse(value)

        if url.scheme not in SUPPORTED_SCHEMES:
            raise InvalidDsn(ERR_UNKNOWN_SCHEME.format(url.scheme, value))

        try:
            netloc = url.hostname
            if url.port:
                netloc += ':%s' % url.port
        except (TypeError, ValueError):
            raise InvalidDsn('Invalid Kestrel DSN: %r' % value)

        path_bits = url.path.rsplit('/', 1)
        if len(path_bits) > 1:
            path = path_bits[0]
        else:
            path = ''
        project = path_bits[-1]

        if not all([netloc, project, url.username]):
            raise InvalidDsn('Invalid Kestrel DSN: %r' % url.geturl())

        base_url = '%s://%s%s' % (url.scheme, netloc, path)

        return cls(
            base_url=base_url,
            project=project,
            public_key=url.username,
            secret_key=url.password,
        )
