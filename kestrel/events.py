"""
kestrel.events
~~~~~~~~~~~~~~

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""
import logging
import sys

from kestrel.utils.stacks import (
    get_culprit, get_stack_info, iter_traceback_frames)

__all__ = ('BaseEvent', 'Exception', 'Message', 'level_from_logging')

LOGGING_LEVELS = {
    logging.DEBUG: 'debug',
    logging.INFO: 'info',
    logging.WARNING: 'warning',
    logging.ERROR: 'error',
    logging.CRITICAL: 'fatal',
}


def level_from_logging(levelno):
    for threshold in sorted(LOGGING_LEVELS, reverse=True):
        if levelno >= threshold:
            return LOGGING_LEVELS[threshold]
    return 'debug'


class BaseEvent(object):
    def __init__(self, client):
        self.client = client
        self.logger = logging.getLogger(__name__)

    def to_string(self, data):
        raise NotImplementedError

    def capture(self, **kwargs):
        return {
        }


class Exception(BaseEvent):
    """
    Exceptions store the following metadata:

    - value: 'My exception value'
    - type: 'ClassName'
    - module 'builtins' (i.e. builtins.TypeError)
    - stacktrace: a list of serialized frames (see get_stack_info)
    """
    name = 'exception'

    def to_string(self, data):
        exc = data[self.name]['values'][-1]
        if exc['value']:
            return '%s: %s' % (exc['type'], exc['value'])
        return exc['type']

    def capture(self, exc_info=None, **kwargs):
        if not exc_info or exc_info is True:
            exc_info = sys.exc_info()
        elif isinstance(exc_info, BaseException):
            exc_info = (type(exc_info), exc_info, exc_info.__traceback__)

        if not exc_info or exc_info[0] is None:
            raise ValueError('No exception found')

        values = []
        exc_type, exc_value, exc_traceback = exc_info
        seen = set()
        while exc_value is not None and id(exc_value) not in seen:
            seen.add(id(exc_value))
            values.append(self._get_value(type(exc_value), exc_value,
                                          exc_value.__traceback__ or exc_traceback))
            exc_traceback = None
            exc_value = exc_value.__cause__ or exc_value.__context__
        # innermost cause first, as ingestion expects
        values.reverse()

        frames = values[-1]['stacktrace']['frames']
        result = {
            'level': kwargs.get('level') or 'error',
            self.name: {
                'values': values,
            },
        }
        culprit = get_culprit(frames)
        if culprit:
            result['culprit'] = culprit
        return result

    def _get_value(self, exc_type, exc_value, exc_traceback):
        exc_module = getattr(exc_type, '__module__', None)
        if exc_module:
            exc_module = str(exc_module)
        return {
            'value': str(exc_value),
            'type': getattr(exc_type, '__name__', '<unknown>'),
            'module': exc_module,
            'stacktrace': {
                'frames': get_stack_info(iter_traceback_frames(exc_traceback)),
            },
        }


class Message(BaseEvent):
    """
    Messages store the following metadata:

    - message: 'My message from %s about %s'
    - params: ('foo', 'bar')
    """

    name = 'logentry'

    def to_string(self, data):
        return data[self.name]['formatted']

    def capture(self, message, params=(), formatted=None, **kwargs):
        message = str(message)
        if formatted is None:
            formatted = message
            if params:
                try:
                    formatted = message % params
                except (TypeError, ValueError):
                    pass
        return {
            'level': kwargs.get('level') or 'info',
            self.name: {
                'message': message,
                'params': list(params) if isinstance(params, (list, tuple)) else params,
                'formatted': formatted,
            },
        }
