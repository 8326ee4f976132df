"""
kestrel.session
~~~~~~~~~~~~~~~

Release health sessions. A session is opened when the client starts,
updated on every tracking interval and closed when the client stops.

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""
import threading
import uuid
from datetime import datetime, timezone

ERROR_LEVELS = ('error', 'fatal')


def utcnow():
    return datetime.now(timezone.utc)


class Session(object):
    OK = 'ok'
    EXITED = 'exited'
    CRASHED = 'crashed'
    ABNORMAL = 'abnormal'

    def __init__(self, release=None, environment=None, distinct_id=None):
        self.sid = uuid.uuid4().hex
        self.distinct_id = distinct_id
        self.started = utcnow()
        self.timestamp = self.started
        self.status = self.OK
        self.errors = 0
        self.sequence = 0
        self.init = True
        self.duration = None
        self.release = release
        self.environment = environment
        self._lock = threading.Lock()

    def __repr__(self):
        return '<%s: %s %s errors=%d>' % (
            type(self).__name__, self.sid, self.status, self.errors)

    @property
    def is_ended(self):
        return self.duration is not None

    def record_error(self, crashed=False):
        with self._lock:
            if self.is_ended:
                return
            self.errors += 1
            if crashed:
                self.status = self.CRASHED

    def update(self):
        with self._lock:
            self.timestamp = utcnow()
            self.sequence += 1

    def end(self, status=EXITED, timestamp=None):
        with self._lock:
            # a crash is final
            if self.status == self.CRASHED:
                status = self.CRASHED
            self.status = status
            self.timestamp = timestamp or utcnow()
            self.duration = (self.timestamp - self.started).total_seconds()
            self.sequence += 1

    def to_json(self):
        """
        Returns the session update payload, clearing the ``init`` flag so
        only the first update is marked as initial.
        """
        with self._lock:
            rv = {
                'sid': self.sid,
                'init': self.init,
                'started': self.started,
                'timestamp': self.timestamp,
                'status': self.status,
                'errors': self.errors,
                'seq': self.sequence,
                'attrs': {
                    'release': self.release,
                    'environment': self.environment,
                },
            }
            if self.distinct_id is not None:
                rv['did'] = self.distinct_id
            if self.duration is not None:
                rv['duration'] = self.duration
            self.init = False
        return rv


class SessionTracker(object):
    """
    Owns the current session of a client and hands session updates to
    ``send`` (which is expected to queue them for transmission).
    """

    def __init__(self, send, release=None, environment=None):
        self._send = send
        self.release = release
        self.environment = environment
        self.session = None
        self.ticks = 0

    def start_session(self, distinct_id=None):
        # a session left open was never closed by its owner
        self.close_abnormal()
        self.session = Session(
            release=self.release,
            environment=self.environment,
            distinct_id=distinct_id,
        )
        self._send(self.session.to_json())
        return self.session

    def end_session(self, status=Session.EXITED, timestamp=None):
        session = self.session
        if session is None or session.is_ended:
            return
        session.end(status, timestamp=timestamp)
        self._send(session.to_json())

    def close_abnormal(self, timestamp=None):
        """
        Closes a session that is still open as ``abnormal``, ending it at
        ``timestamp`` or, by default, at its last update.
        """
        session = self.session
        if session is None or session.is_ended:
            return
        self.end_session(Session.ABNORMAL,
                         timestamp=timestamp or session.timestamp)

    def tick(self):
        """
        Called on every session tracking interval by the worker.
        """
        self.ticks += 1
        session = self.session
        if session is None or session.is_ended:
            return
        session.update()
        self._send(session.to_json())

    def record_event(self, event):
        session = self.session
        if session is None:
            return
        if event.get('level') in ERROR_LEVELS or event.get('exception'):
            session.record_error(crashed=event.get('level') == 'fatal')
