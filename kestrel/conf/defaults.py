"""
kestrel.conf.defaults
~~~~~~~~~~~~~~~~~~~~~

Represents the default values for all Kestrel settings.

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""
import socket

# Environment variable consulted when no DSN is passed explicitly
DSN_ENV_VAR = 'KESTREL_DSN'

# HTTP timeout (in seconds) for a single request to the ingestion endpoint
TIMEOUT = 5

# Not all environments have access to socket module, for example Google App Engine
NAME = socket.gethostname() if hasattr(socket, 'gethostname') else None

# Interval between two session updates
SESSION_TRACKING_INTERVAL_MS = 30000

# Seconds ``stop()`` waits for queued payloads to be sent
SHUTDOWN_TIMEOUT = 2

# Bounded retry policy for failed transmissions
MAX_ATTEMPTS = 5
BACKOFF_BASE = 1
BACKOFF_MAX = 60

# Seconds a credential delegate may take to answer a challenge
CHALLENGE_TIMEOUT = 5

# The maximum number of breadcrumbs kept on the scope
MAX_BREADCRUMBS = 100

ENVIRONMENT = 'production'
