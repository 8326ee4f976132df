"""
kestrel
~~~~~~~

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""

__all__ = ('VERSION', 'Client', 'ClientConfig', 'start', 'stop', 'report')

VERSION = '1.0.0'

from kestrel.base import Client  # NOQA
from kestrel.conf import ClientConfig  # NOQA
from kestrel.api import (  # NOQA
    start, stop, report, flush, get_client, capture_message,
    capture_exception, add_breadcrumb, configure_scope)
from kestrel.auth import (  # NOQA
    Challenge, Credential, CredentialDelegate, Disposition)
from kestrel.exceptions import InvalidConfig  # NOQA
