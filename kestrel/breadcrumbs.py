"""
kestrel.breadcrumbs
~~~~~~~~~~~~~~~~~~~

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""
import logging
import threading
import time

from kestrel.conf import defaults

logger = logging.getLogger('kestrel')


def event_payload_considered_equal(a, b):
    return (
        a['type'] == b['type'] and
        a['level'] == b['level'] and
        a['message'] == b['message'] and
        a['category'] == b['category'] and
        a['data'] == b['data']
    )


class BreadcrumbBuffer(object):

    def __init__(self, limit=defaults.MAX_BREADCRUMBS):
        self.buffer = []
        self.limit = limit
        self._lock = threading.Lock()

    def __len__(self):
        return len(self.buffer)

    def record(self, timestamp=None, level=None, message=None,
               category=None, data=None, type=None, processor=None):
        if not (message or data or processor):
            raise ValueError('You must pass either `message`, `data`, '
                             'or `processor`')
        if timestamp is None:
            timestamp = time.time()
        with self._lock:
            self.buffer.append(({
                'type': type or 'default',
                'timestamp': timestamp,
                'level': level or 'info',
                'message': message,
                'category': category,
                'data': data,
            }, processor))
            del self.buffer[:-self.limit]

    def clear(self):
        with self._lock:
            del self.buffer[:]

    def get_buffer(self):
        rv = []
        with self._lock:
            for idx, (payload, processor) in enumerate(self.buffer):
                if processor is not None:
                    try:
                        processor(payload)
                    except Exception:
                        logger.exception('Failed to process breadcrumbs. Ignored')
                        payload = None
                    self.buffer[idx] = (payload, None)
                if payload is not None and \
                   (not rv or not event_payload_considered_equal(rv[-1], payload)):
                    rv.append(dict(payload))
        return rv
