"""
kestrel.exceptions
~~~~~~~~~~~~~~~~~~

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""


class KestrelError(Exception):
    pass


class InvalidConfig(KestrelError, ValueError):
    """
    Raised when a client is configured with missing or malformed options.
    """


class InvalidDsn(InvalidConfig):
    pass


class TransmissionFailure(KestrelError):
    def __init__(self, message, code=0):
        super(TransmissionFailure, self).__init__(message)
        self.code = code
        self.message = message

    def __str__(self):
        return '%s: %s' % (self.message, self.code)


class RateLimited(TransmissionFailure):
    def __init__(self, message, retry_after=0):
        self.retry_after = retry_after
        super(RateLimited, self).__init__(message, code=429)


class ChallengeCancelled(TransmissionFailure):
    """
    Raised by the transport when an authentication challenge was
    answered with ``cancel``. Requests failing this way are not retried.
    """


class ChallengeTimeout(KestrelError):
    pass
