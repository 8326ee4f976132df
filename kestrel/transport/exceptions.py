"""
kestrel.transport.exceptions
~~~~~~~~~~~~~~~~~~~~~~~~~~~~

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""


class InvalidScheme(ValueError):
    """
    Raised when a transport is asked to send to a URI which is not
    handled by the transport
    """
