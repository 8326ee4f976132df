"""
kestrel.transport.base
~~~~~~~~~~~~~~~~~~~~~~

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""
from kestrel.transport.exceptions import InvalidScheme


class Transport(object):
    """
    All transport implementations need to subclass this class

    You must implement a send method. Transports are always invoked
    from the client's background worker, so ``send`` is free to block on
    network I/O; it should raise :class:`kestrel.exceptions.TransmissionFailure`
    (or any exception) when the payload could not be delivered.
    """

    scheme = []

    def __init__(self, timeout=None, verify_ssl=True, ca_certs=None,
                 credential_delegate=None, challenge_timeout=None):
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.ca_certs = ca_certs
        self.credential_delegate = credential_delegate
        self.challenge_timeout = challenge_timeout

    def check_scheme(self, url):
        if url.scheme not in self.scheme:
            raise InvalidScheme()

    def send(self, url, data, headers):
        """
        You need to override this to do something with the actual
        data. Usually - this is sending to a server
        """
        raise NotImplementedError

    def close(self):
        pass
