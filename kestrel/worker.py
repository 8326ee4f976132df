"""
kestrel.worker
~~~~~~~~~~~~~~

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""
import atexit
import heapq
import itertools
import logging
import threading
import time
from queue import Empty, Queue

from kestrel.conf import defaults

logger = logging.getLogger('kestrel.errors')


class PeriodicJob(object):
    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.next_run = time.monotonic() + interval
        self.runs = 0

    def __repr__(self):
        return '<%s: every %ss>' % (type(self).__name__, self.interval)


class AsyncWorker(object):
    """
    A single background thread owning the job queue, the delayed
    (retried) jobs and the periodic jobs of a client.

    Delayed jobs are handed over through the queue and only ever touched
    by the worker thread.
    """
    _terminator = object()

    def __init__(self, shutdown_timeout=defaults.SHUTDOWN_TIMEOUT):
        self._queue = Queue(-1)
        self._lock = threading.Lock()
        self._thread = None
        self._cancelled = threading.Event()
        self._periodic = []
        self._counter = itertools.count()
        self.options = {
            'shutdown_timeout': shutdown_timeout,
        }

    def is_alive(self):
        thread = self._thread
        return bool(thread and thread.is_alive())

    @property
    def periodic_jobs(self):
        with self._lock:
            return list(self._periodic)

    def main_thread_terminated(self):
        size = self._queue.qsize()
        if size:
            logger.info('Kestrel is attempting to send %s pending payloads, '
                        'waiting up to %s seconds',
                        size, self.options['shutdown_timeout'])
        self.stop(timeout=self.options['shutdown_timeout'])

    def start(self):
        """
        Starts the task thread.
        """
        with self._lock:
            if not self._thread:
                self._queue = Queue(-1)
                self._cancelled = threading.Event()
                self._thread = threading.Thread(
                    target=self._target, args=(self._queue, self._cancelled),
                    name='kestrel-worker')
                self._thread.daemon = True
                self._thread.start()
                atexit.register(self.main_thread_terminated)

    def stop(self, timeout=None):
        """
        Stops the task thread, sending whatever was queued before the
        call, and retries coming due, for up to ``timeout`` seconds.
        Synchronous!
        """
        with self._lock:
            thread, self._thread = self._thread, None
            queue, cancelled = self._queue, self._cancelled
            self._periodic = []

        if thread is None:
            return

        deadline = None
        if timeout is not None:
            deadline = time.monotonic() + timeout
        queue.put_nowait((self._terminator, deadline, None, None))
        thread.join(timeout=timeout)
        if thread.is_alive():
            # drop whatever is left once the current job returns
            cancelled.set()
        atexit.unregister(self.main_thread_terminated)

    def schedule(self, interval, callback):
        """
        Runs ``callback`` on the worker thread every ``interval`` seconds
        until the worker stops.
        """
        job = PeriodicJob(interval, callback)
        with self._lock:
            self._periodic.append(job)
            queue = self._queue
        # wake the thread up so it picks up the new deadline
        queue.put_nowait(None)
        return job

    def queue(self, callback, *args, **kwargs):
        self._queue.put_nowait((None, callback, args, kwargs))

    def queue_later(self, delay, callback, *args, **kwargs):
        self._queue.put_nowait(
            (time.monotonic() + delay, callback, args, kwargs))

    def _next_timeout(self, delayed, periodic=True):
        deadlines = []
        if periodic:
            deadlines.extend(job.next_run for job in self.periodic_jobs)
        if delayed:
            deadlines.append(delayed[0][0])
        if not deadlines:
            return None
        return max(0, min(deadlines) - time.monotonic())

    def _run(self, callback, args, kwargs):
        try:
            callback(*args, **kwargs)
        except Exception:
            logger.error('Failed processing job', exc_info=True)

    def _run_due(self, delayed, cancelled, periodic=True):
        while delayed and delayed[0][0] <= time.monotonic():
            if cancelled.is_set():
                return
            _, _, callback, args, kwargs = heapq.heappop(delayed)
            self._run(callback, args, kwargs)

        if not periodic:
            return
        for job in self.periodic_jobs:
            if cancelled.is_set():
                return
            if job.next_run <= time.monotonic():
                job.next_run += job.interval
                if job.next_run <= time.monotonic():
                    job.next_run = time.monotonic() + job.interval
                job.runs += 1
                self._run(job.callback, (), {})

    def _target(self, queue, cancelled):
        delayed = []
        stopping = False
        deadline = None
        discarded = 0
        while not cancelled.is_set():
            if stopping:
                # retries not due before the shutdown deadline are dropped
                if deadline is not None:
                    kept = [item for item in delayed if item[0] <= deadline]
                    discarded += len(delayed) - len(kept)
                    delayed = kept
                    heapq.heapify(delayed)
                if not delayed and queue.empty():
                    break

            try:
                record = queue.get(
                    timeout=self._next_timeout(delayed, periodic=not stopping))
            except Empty:
                record = None

            if cancelled.is_set():
                if record is not None and record[0] is not self._terminator:
                    discarded += 1
                break

            if record is not None and record[0] is self._terminator:
                stopping, deadline = True, record[1]
            elif record is not None:
                due, callback, args, kwargs = record
                if due is not None and due > time.monotonic():
                    heapq.heappush(
                        delayed, (due, next(self._counter), callback, args, kwargs))
                else:
                    self._run(callback, args, kwargs)

            self._run_due(delayed, cancelled, periodic=not stopping)

        discarded += len(delayed)
        while True:
            try:
                record = queue.get_nowait()
            except Empty:
                break
            if record is not None and record[0] is not self._terminator:
                discarded += 1
        if discarded:
            logger.info('Discarding %s pending jobs', discarded)
