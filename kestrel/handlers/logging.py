"""
kestrel.handlers.logging
~~~~~~~~~~~~~~~~~~~~~~~~

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""
import logging
import sys
import traceback

from kestrel import api
from kestrel.events import level_from_logging

RESERVED = frozenset((
    'stack', 'name', 'module', 'funcName', 'args', 'msg', 'levelno',
    'exc_text', 'exc_info', 'data', 'created', 'levelname', 'msecs',
    'relativeCreated', 'tags', 'message', 'lineno', 'pathname', 'filename',
    'thread', 'threadName', 'process', 'processName', 'stack_info',
    'taskName',
))


class KestrelHandler(logging.Handler):
    """
    Reports log records as events, either through ``client`` or, when
    none is given, through whichever client is active.

    >>> logging.getLogger().addHandler(KestrelHandler(level=logging.ERROR))
    """

    def __init__(self, client=None, level=logging.NOTSET):
        self.client = client
        logging.Handler.__init__(self, level=level)

    def get_client(self):
        return self.client or api.get_client()

    def emit(self, record):
        try:
            self.format(record)

            # Avoid typical config issues by overriding loggers behavior
            if record.name == 'kestrel' or record.name.startswith('kestrel.'):
                print(record.message, file=sys.stderr)
                return

            return self._emit(record)
        except Exception:
            print("Top level Kestrel exception caught - failed creating log record",
                  file=sys.stderr)
            print(record.msg, file=sys.stderr)
            print(traceback.format_exc(), file=sys.stderr)

    def _emit(self, record):
        client = self.get_client()
        if client is None:
            return None

        extra = getattr(record, 'data', None)
        if isinstance(extra, dict):
            extra = dict(extra)
        elif extra:
            extra = {'data': extra}
        else:
            extra = {}

        for k, v in vars(record).items():
            if k in RESERVED or k.startswith('_'):
                continue
            extra[k] = v

        data = {
            'logger': record.name,
            'extra': extra,
            'tags': dict(getattr(record, 'tags', None) or {}),
            'culprit': '%s in %s' % (record.module, record.funcName),
        }
        level = level_from_logging(record.levelno)

        # If there's no exception being processed, exc_info may be a 3-tuple of None
        if record.exc_info and all(record.exc_info):
            data['logentry'] = {
                'message': str(record.msg),
                'params': record.args,
                'formatted': record.message,
            }
            return client.capture_exception(
                record.exc_info, data=data, level=level)

        return client.capture_message(
            record.msg, params=record.args, formatted=record.message,
            data=data, level=level)
