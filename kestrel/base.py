"""
kestrel.base
~~~~~~~~~~~~

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""
import logging
import threading
import time
import uuid
import zlib

import kestrel
from kestrel.context import Context
from kestrel.events import Exception as ExceptionEvent, Message
from kestrel.exceptions import ChallengeCancelled, RateLimited
from kestrel.session import SessionTracker, utcnow
from kestrel.transport.http import HTTPTransport
from kestrel.utils import json, get_auth_header, merge_dicts
from kestrel.worker import AsyncWorker

__all__ = ('Client', 'RetryPolicy')

PLATFORM_NAME = 'python'


class RetryPolicy(object):
    """
    Bounded exponential backoff for failed transmissions.

    The n-th retry waits ``backoff_base * 2 ** (n - 1)`` seconds, capped at
    ``backoff_max``, or longer when the server asked us to back off.
    """

    def __init__(self, max_attempts, backoff_base, backoff_max):
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max

    def should_retry(self, attempt, exc):
        if isinstance(exc, ChallengeCancelled):
            return False
        return attempt < self.max_attempts

    def get_delay(self, attempt, exc=None):
        delay = min(self.backoff_base * 2 ** (attempt - 1), self.backoff_max)
        if isinstance(exc, RateLimited) and exc.retry_after:
            delay = max(delay, exc.retry_after)
        return delay


class Client(object):
    """
    The reporting client. It owns a background worker sending payloads to
    the ingestion endpoint and tracking the release health session.

    Clients are usually started through :func:`kestrel.start`, which keeps
    at most one of them active per process:

    >>> import kestrel
    >>> client = kestrel.start(dsn='https://public_key@kestrel.local/1')
    >>> client.capture_message('My event just happened!')
    >>> client.stop()
    """
    logger = logging.getLogger('kestrel')
    protocol_version = '7'

    CREATED = 'created'
    STARTED = 'started'
    STOPPED = 'stopped'

    def __init__(self, config):
        self.config = config
        self.remote = config.remote
        self.status = self.CREATED

        self.error_logger = logging.getLogger('kestrel.errors')
        self.retry_policy = RetryPolicy(
            max_attempts=config.max_attempts,
            backoff_base=config.backoff_base,
            backoff_max=config.backoff_max,
        )
        self.worker = AsyncWorker(shutdown_timeout=config.shutdown_timeout)
        self.session_tracker = SessionTracker(
            self.send_session,
            release=config.release,
            environment=config.environment,
        )
        self._context = Context(max_breadcrumbs=config.max_breadcrumbs)
        self._transport = None
        self._lock = threading.Lock()

    def __repr__(self):
        return '<%s: %s %s>' % (
            type(self).__name__, self.remote.get_public_dsn(), self.status)

    def configure_logging(self):
        level = logging.DEBUG if self.config.debug else logging.INFO
        for name in ('kestrel', 'kestrel.errors'):
            logger = logging.getLogger(name)
            if not logger.handlers:
                logger.addHandler(logging.StreamHandler())
            logger.setLevel(level)

    @property
    def transport(self):
        if self._transport is None:
            transport_cls = self.config.transport or HTTPTransport
            self._transport = transport_cls(
                timeout=self.config.timeout,
                verify_ssl=self.config.verify_ssl,
                ca_certs=self.config.ca_certs,
                credential_delegate=self.config.credential_delegate,
                challenge_timeout=self.config.challenge_timeout,
            )
        return self._transport

    @property
    def context(self):
        """
        Updates the scope applied to all future events.

        >>> client.context.merge({'tags': {'key': 'value'}})
        """
        return self._context

    def is_started(self):
        return self.status == self.STARTED

    def start(self):
        with self._lock:
            if self.status == self.STARTED:
                return self
            self.configure_logging()
            self.logger.debug(
                'Starting Kestrel client for %s', self.remote.base_url)
            # build the transport before the worker can use it
            self.transport
            self.worker.start()
            self.status = self.STARTED

            if self.config.enable_auto_session_tracking:
                self.session_tracker.start_session()
                interval = self.config.session_tracking_interval
                if interval > 0:
                    self.worker.schedule(interval, self.session_tracker.tick)
        return self

    def stop(self, timeout=None):
        """
        Ends the session and waits up to ``timeout`` seconds (defaults to
        the ``shutdown_timeout`` option) for pending payloads to be sent.
        Anything still queued afterwards is discarded.
        """
        with self._lock:
            if self.status != self.STARTED:
                return
            try:
                self.session_tracker.end_session()
            except Exception:
                self.error_logger.error('Failed to end session', exc_info=True)
            if timeout is None:
                timeout = self.config.shutdown_timeout
            try:
                self.worker.stop(timeout=timeout)
            except Exception:
                self.error_logger.error('Failed to stop worker', exc_info=True)
            finally:
                self.status = self.STOPPED
            if self._transport is not None:
                try:
                    self._transport.close()
                except Exception:
                    self.error_logger.error(
                        'Failed to close transport', exc_info=True)
            self.logger.debug('Stopped Kestrel client')

    close = stop

    def flush(self, timeout=None):
        """
        Blocks until every payload queued so far was handed to the
        transport, or ``timeout`` seconds passed. Returns True on success.
        """
        if not self.is_started():
            return False
        done = threading.Event()
        self.worker.queue(done.set)
        return done.wait(timeout)

    def user_context(self, data):
        """
        Update the user context for future events.

        >>> client.user_context({'email': 'foo@example.com'})
        """
        return self.context.merge({'user': data})

    def extra_context(self, data):
        """
        Update the extra context for future events.

        >>> client.extra_context({'foo': 'bar'})
        """
        return self.context.merge({'extra': data})

    def tags_context(self, data):
        """
        Update the tags context for future events.

        >>> client.tags_context({'version': '1.0'})
        """
        return self.context.merge({'tags': data})

    def add_breadcrumb(self, message=None, category=None, level=None,
                       data=None, type=None, timestamp=None):
        """
        Records a breadcrumb attached to all future events.

        >>> client.add_breadcrumb('User logged in', category='auth')
        """
        try:
            self.context.breadcrumbs.record(
                timestamp=timestamp, level=level, message=message,
                category=category, data=data, type=type)
        except Exception:
            self.error_logger.error('Failed to record breadcrumb',
                                    exc_info=True)

    def prepare_event(self, event):
        event = dict(event)
        event.setdefault('event_id', uuid.uuid4().hex)
        event.setdefault('timestamp', utcnow())
        event.setdefault('platform', PLATFORM_NAME)
        event.setdefault('level', 'error')
        event['tags'] = merge_dicts(self.config.tags, event.get('tags'))
        if self.config.server_name:
            event.setdefault('server_name', self.config.server_name)
        if self.config.environment:
            event.setdefault('environment', self.config.environment)
        if self.config.release:
            event.setdefault('release', self.config.release)
        return self.context.apply_to_event(event)

    def report(self, event):
        """
        Reports ``event`` (a dict), returning its id or None when it was
        dropped.

        ``before_send`` runs synchronously on the calling thread; the
        event it returns is queued for transmission on the worker. This
        never raises and never waits on the network.
        """
        if not self.is_started():
            self.logger.debug('Client is not started, dropping event')
            return None

        try:
            event = self.prepare_event(event)
        except Exception:
            self.error_logger.error('Failed to prepare event', exc_info=True)
            return None

        before_send = self.config.before_send
        if before_send is not None:
            try:
                event = before_send(event)
            except Exception:
                self.error_logger.error(
                    'before_send raised, dropping event', exc_info=True)
                return None
            if event is None:
                self.logger.debug('Event dropped by before_send')
                return None

        try:
            self.session_tracker.record_event(event)
            self.send(event)
        except Exception:
            self.error_logger.error('Failed to queue event', exc_info=True)
            return None
        return event.get('event_id')

    def capture(self, handler, data=None, **kwargs):
        event = dict(data or {})
        for k, v in handler.capture(**kwargs).items():
            event.setdefault(k, v)
        event.setdefault('message', handler.to_string(event))
        return self.report(event)

    def capture_message(self, message, level='info', params=(), data=None,
                        **kwargs):
        """
        Creates an event from ``message``.

        >>> client.capture_message('My event just happened!')
        """
        try:
            return self.capture(Message(self), data=data, message=message,
                                params=params, level=level, **kwargs)
        except Exception:
            self.error_logger.error('Failed to capture message',
                                    exc_info=True)

    def capture_exception(self, exc_info=None, data=None, **kwargs):
        """
        Creates an event from an exception.

        >>> try:
        >>>     1 / 0
        >>> except ZeroDivisionError:
        >>>     client.capture_exception()

        If exc_info is not provided, or is set to True, then this method will
        perform the ``exc_info = sys.exc_info()`` and the requisite clean-up
        for you.
        """
        try:
            return self.capture(ExceptionEvent(self), data=data,
                                exc_info=exc_info, **kwargs)
        except Exception:
            self.error_logger.error('Failed to capture exception',
                                    exc_info=True)

    def send(self, event):
        return self.send_remote('event', self.encode(event))

    def send_session(self, session):
        return self.send_remote('session', self.encode(session))

    def send_remote(self, kind, data):
        url = self.remote.get_endpoint(kind)
        self.logger.debug('Queueing %s of length %d for %s', kind, len(data), url)
        self.worker.queue(self._transmit, kind, url, data, 1)

    def get_headers(self):
        client_string = 'kestrel-python/%s' % (kestrel.VERSION,)
        return {
            'User-Agent': client_string,
            'X-Sentry-Auth': get_auth_header(
                protocol=self.protocol_version,
                timestamp=time.time(),
                client=client_string,
                api_key=self.remote.public_key,
                api_secret=self.remote.secret_key,
            ),
            'Content-Type': 'application/json',
            'Content-Encoding': 'deflate',
        }

    def _transmit(self, kind, url, data, attempt):
        try:
            self.transport.send(url, data, self.get_headers())
        except Exception as e:
            self._failed_send(e, kind, url, data, attempt)
        else:
            self.logger.debug('Sent %s to %s', kind, url)

    def _failed_send(self, e, kind, url, data, attempt):
        if not self.retry_policy.should_retry(attempt, e):
            self.error_logger.error(
                'Dropping %s after %d attempt(s): %s (url: %s)',
                kind, attempt, e, url, exc_info=True,
                extra={'data': {'remote_url': url}})
            return

        delay = self.retry_policy.get_delay(attempt, e)
        self.error_logger.warning(
            'Unable to reach Kestrel server: %s (url: %s), retrying in %ss',
            e, url, delay)
        self.worker.queue_later(delay, self._transmit, kind, url, data,
                                attempt + 1)

    def encode(self, data):
        """
        Serializes ``data`` into a compressed JSON payload.
        """
        return zlib.compress(json.dumps(data).encode('utf8'))

    def decode(self, data):
        """
        Unserializes a payload produced by ``encode``.
        """
        return json.loads(zlib.decompress(data).decode('utf8'))
