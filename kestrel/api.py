"""
kestrel.api
~~~~~~~~~~~

The process-wide client. ``start()`` makes a client active, replacing
(and stopping) whichever client was active before; every other function
here forwards to the active client and quietly does nothing when there
is none.

>>> import kestrel
>>> kestrel.start(
>>>     dsn='https://public_key@kestrel.local/1',
>>>     debug=True,
>>>     session_tracking_interval_ms=5000,
>>>     before_send=lambda event: event,
>>> )
>>> kestrel.capture_message('Hello')
>>> kestrel.stop()

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""
import logging
import threading

from kestrel.base import Client
from kestrel.conf import ClientConfig

__all__ = ('start', 'stop', 'report', 'flush', 'get_client',
           'capture_message', 'capture_exception', 'add_breadcrumb',
           'configure_scope')

logger = logging.getLogger('kestrel')

_lock = threading.Lock()
_client = None


def get_client():
    return _client


def start(config=None, **options):
    """
    Starts a client from ``config`` (or from ``options`` when no config is
    given) and makes it the active one. Returns the started client, which
    can be used as a handle to stop it.

    Raises :class:`kestrel.exceptions.InvalidConfig` when the
    configuration is missing or malformed; the previously active client,
    if any, keeps running in that case.
    """
    global _client

    if config is None:
        config = ClientConfig(**options)
    elif options:
        config = config.replace(**options)

    client = Client(config)
    with _lock:
        previous = _client
        if previous is not None:
            logger.debug('Replacing active client %r', previous)
            previous.stop()
        client.start()
        _client = client
    return client


def stop(timeout=None):
    """
    Stops the active client. Does nothing when no client was started.
    """
    with _lock:
        client = _client
    if client is None:
        return
    try:
        client.stop(timeout=timeout)
    except Exception:
        logger.error('Failed to stop client', exc_info=True)


def flush(timeout=None):
    client = _client
    if client is None:
        return False
    return client.flush(timeout)


def report(event):
    client = _client
    if client is None:
        logger.debug('No active client, dropping event')
        return None
    return client.report(event)


def capture_message(message, **kwargs):
    client = _client
    if client is None:
        logger.debug('No active client, dropping message')
        return None
    return client.capture_message(message, **kwargs)


def capture_exception(exc_info=None, **kwargs):
    client = _client
    if client is None:
        logger.debug('No active client, dropping exception')
        return None
    return client.capture_exception(exc_info, **kwargs)


def add_breadcrumb(message=None, **kwargs):
    client = _client
    if client is None:
        return None
    return client.add_breadcrumb(message, **kwargs)


def configure_scope(callback):
    """
    Invokes ``callback`` with the active client's scope.

    >>> kestrel.configure_scope(lambda scope: scope.set_tag('tenant', 'a'))
    """
    client = _client
    if client is None:
        return None
    try:
        return callback(client.context)
    except Exception:
        logger.error('Failed to configure scope', exc_info=True)
