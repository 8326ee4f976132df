"""
kestrel.context
~~~~~~~~~~~~~~~

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""
import threading
from collections.abc import Mapping

from kestrel.breadcrumbs import BreadcrumbBuffer
from kestrel.conf import defaults
from kestrel.utils import merge_dicts


class Context(Mapping):
    """
    Stores the scope applied to every event reported by a client until
    cleared.

    >>> client.context.merge({'tags': {'key': 'value'}})
    >>> client.context.merge({'user': {'id': '42'}})
    """

    def __init__(self, max_breadcrumbs=defaults.MAX_BREADCRUMBS):
        self.data = {}
        self.breadcrumbs = BreadcrumbBuffer(limit=max_breadcrumbs)
        self._lock = threading.RLock()

    def __getitem__(self, key):
        return self.data[key]

    def __iter__(self):
        return iter(self.data)

    def __len__(self):
        return len(self.data)

    def __repr__(self):
        return '<%s: %s>' % (type(self).__name__, self.data)

    def merge(self, data):
        with self._lock:
            d = self.data
            for key, value in data.items():
                if key in ('tags', 'extra'):
                    d.setdefault(key, {})
                    for t_key, t_value in value.items():
                        d[key][t_key] = t_value
                else:
                    d[key] = value

    def set_tag(self, key, value):
        self.merge({'tags': {key: value}})

    def set_extra(self, key, value):
        self.merge({'extra': {key: value}})

    def set_user(self, user):
        with self._lock:
            if user is None:
                self.data.pop('user', None)
            else:
                self.data['user'] = user

    def set(self, data):
        with self._lock:
            self.data = data

    def get(self):
        with self._lock:
            return dict(self.data)

    def clear(self):
        with self._lock:
            self.data = {}
        self.breadcrumbs.clear()

    def apply_to_event(self, event):
        """
        Fills ``event`` with the scope data it does not set itself.
        """
        with self._lock:
            data = dict(self.data)
        event['tags'] = merge_dicts(data.get('tags'), event.get('tags'))
        event['extra'] = merge_dicts(data.get('extra'), event.get('extra'))
        if 'user' in data and not event.get('user'):
            event['user'] = dict(data['user'])
        for key, value in data.items():
            if key not in ('tags', 'extra', 'user'):
                event.setdefault(key, value)
        crumbs = self.breadcrumbs.get_buffer()
        if crumbs and 'breadcrumbs' not in event:
            event['breadcrumbs'] = {'values': crumbs}
        return event
