"""
kestrel.transport
~~~~~~~~~~~~~~~~~

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""
from kestrel.transport.base import Transport  # NOQA
from kestrel.transport.exceptions import InvalidScheme  # NOQA
from kestrel.transport.http import HTTPTransport  # NOQA
