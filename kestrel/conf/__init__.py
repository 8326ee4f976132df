"""
kestrel.conf
~~~~~~~~~~~~

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""
import logging
import os

from kestrel.conf import defaults
from kestrel.conf.remote import RemoteConfig
from kestrel.exceptions import InvalidConfig

__all__ = ('ClientConfig', 'setup_logging')

EXCLUDE_LOGGER_DEFAULTS = (
    'kestrel',
    'kestrel.errors',
)

# Durations in seconds
NUMERIC_OPTIONS = (
    'shutdown_timeout',
    'backoff_base',
    'backoff_max',
    'timeout',
    'challenge_timeout',
)


class ClientConfig(object):
    """
    The options a client is started with.

    Only ``dsn`` is required; it is read from ``os.environ['KESTREL_DSN']``
    when not passed. Every other option has a default from
    :mod:`kestrel.conf.defaults`. A config can not be changed once built,
    construct a new one and call ``start()`` again instead.

    >>> config = ClientConfig(
    >>>     dsn='https://public_key@kestrel.local/1',
    >>>     debug=True,
    >>>     session_tracking_interval_ms=5000,
    >>>     before_send=lambda event: event,
    >>> )
    """

    OPTIONS = {
        'debug': False,
        'session_tracking_interval_ms': defaults.SESSION_TRACKING_INTERVAL_MS,
        'before_send': None,
        'credential_delegate': None,
        'environment': defaults.ENVIRONMENT,
        'release': None,
        'server_name': None,
        'tags': None,
        'max_breadcrumbs': defaults.MAX_BREADCRUMBS,
        'enable_auto_session_tracking': True,
        'shutdown_timeout': defaults.SHUTDOWN_TIMEOUT,
        'max_attempts': defaults.MAX_ATTEMPTS,
        'backoff_base': defaults.BACKOFF_BASE,
        'backoff_max': defaults.BACKOFF_MAX,
        'timeout': defaults.TIMEOUT,
        'challenge_timeout': defaults.CHALLENGE_TIMEOUT,
        'verify_ssl': True,
        'ca_certs': None,
        'transport': None,
    }

    def __init__(self, dsn=None, **options):
        unknown = set(options) - set(self.OPTIONS)
        if unknown:
            raise InvalidConfig(
                'Unknown option(s): %s' % ', '.join(sorted(unknown)))

        if dsn is None:
            dsn = os.environ.get(defaults.DSN_ENV_VAR)
        if dsn is not None and not isinstance(dsn, str):
            raise InvalidConfig('A DSN must be a string, got %r' % (dsn,))
        if not dsn:
            raise InvalidConfig('A DSN is required to start the client')

        values = dict(self.OPTIONS)
        values.update(options)
        values['dsn'] = dsn
        values['remote'] = RemoteConfig.from_string(dsn)
        values['debug'] = bool(values['debug'])
        values['server_name'] = values['server_name'] or defaults.NAME
        values['tags'] = dict(values['tags'] or {})

        interval = values['session_tracking_interval_ms']
        if isinstance(interval, bool) or not isinstance(interval, int) or interval < 0:
            raise InvalidConfig(
                'session_tracking_interval_ms must be a non-negative '
                'integer, got %r' % (interval,))

        for key in ('max_attempts', 'max_breadcrumbs'):
            value = values[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise InvalidConfig(
                    '%s must be a positive integer, got %r' % (key, value))

        for key in NUMERIC_OPTIONS:
            value = values[key]
            if isinstance(value, bool) or \
               not isinstance(value, (int, float)) or value < 0:
                raise InvalidConfig(
                    '%s must be a non-negative number, got %r' % (key, value))

        before_send = values['before_send']
        if before_send is not None and not callable(before_send):
            raise InvalidConfig('before_send must be callable')

        delegate = values['credential_delegate']
        if delegate is not None and \
           not callable(getattr(delegate, 'handle_challenge', None)):
            raise InvalidConfig(
                'credential_delegate must implement handle_challenge()')

        self.__dict__.update(values)

    def __setattr__(self, name, value):
        raise AttributeError('%s is immutable' % type(self).__name__)

    def __delattr__(self, name):
        raise AttributeError('%s is immutable' % type(self).__name__)

    def __repr__(self):
        return '<%s: %s>' % (type(self).__name__, self.remote.get_public_dsn())

    @property
    def session_tracking_interval(self):
        """The session tracking interval in seconds."""
        return self.session_tracking_interval_ms / 1000.0

    def replace(self, **options):
        """
        Returns a new config with ``options`` overriding this one.
        """
        dsn = options.pop('dsn', self.dsn)
        values = dict((k, getattr(self, k)) for k in self.OPTIONS)
        values.update(options)
        return type(self)(dsn=dsn, **values)


def setup_logging(handler, exclude=EXCLUDE_LOGGER_DEFAULTS):
    """
    Configures logging to pipe to Kestrel.

    - ``exclude`` is a list of loggers that shouldn't go to Kestrel.

    >>> from kestrel.handlers.logging import KestrelHandler
    >>> setup_logging(KestrelHandler())

    Returns a boolean based on if logging was configured or not.
    """
    logger = logging.getLogger()
    if handler.__class__ in map(type, logger.handlers):
        return False

    logger.addHandler(handler)

    # Add StreamHandler to kestrel's default so you can catch missed exceptions
    for logger_name in exclude:
        logger = logging.getLogger(logger_name)
        logger.propagate = False
        if not logger.handlers:
            logger.addHandler(logging.StreamHandler())

    return True
