"""
kestrel.transport.http
~~~~~~~~~~~~~~~~~~~~~~

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""
import logging
from urllib.parse import urlparse

import requests

from kestrel.auth import Challenge, Disposition, consult
from kestrel.conf import defaults
from kestrel.exceptions import (
    ChallengeCancelled, ChallengeTimeout, RateLimited, TransmissionFailure)
from kestrel.transport.base import Transport

logger = logging.getLogger('kestrel.errors')

DEFAULT_PORTS = {'http': 80, 'https': 443}


def parse_retry_after(value):
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


class HTTPTransport(Transport):

    scheme = ['http', 'https']

    def __init__(self, timeout=defaults.TIMEOUT, verify_ssl=True,
                 ca_certs=None, credential_delegate=None,
                 challenge_timeout=defaults.CHALLENGE_TIMEOUT):
        super(HTTPTransport, self).__init__(
            timeout=timeout,
            verify_ssl=verify_ssl,
            ca_certs=ca_certs,
            credential_delegate=credential_delegate,
            challenge_timeout=challenge_timeout,
        )
        self.session = requests.Session()

    def get_default_kwargs(self):
        if not self.verify_ssl:
            verify = False
        else:
            # If SSL verification is enabled use the provided CA bundle to
            # perform the verification.
            verify = self.ca_certs or True
        return {'verify': verify, 'timeout': self.timeout}

    def resolve_challenge(self, challenge):
        """
        Asks the credential delegate to handle ``challenge`` and returns
        the keyword arguments the request should be made with.
        """
        try:
            disposition = consult(
                self.credential_delegate, challenge, self.challenge_timeout)
        except ChallengeTimeout as e:
            logger.warning('%s, cancelling the request', e)
            disposition = Disposition.cancel()

        logger.debug('Challenge %r answered with %r', challenge, disposition)

        if disposition.kind == Disposition.CANCEL:
            raise ChallengeCancelled(
                'Authentication challenge cancelled for %s' % (
                    challenge.host,))
        if disposition.kind == Disposition.USE_CREDENTIAL:
            return disposition.credential.as_request_kwargs()
        return {}

    def make_challenge(self, url, method, realm=None, previous_failure_count=0):
        return Challenge(
            method=method,
            host=url.hostname,
            port=url.port or DEFAULT_PORTS.get(url.scheme),
            protocol=url.scheme,
            realm=realm,
            previous_failure_count=previous_failure_count,
        )

    def send(self, url, data, headers):
        """
        Sends a request to a remote webserver using HTTP POST.
        """
        parsed = urlparse(url)
        self.check_scheme(parsed)

        kwargs = self.get_default_kwargs()
        if self.credential_delegate is not None and parsed.scheme == 'https':
            kwargs.update(self.resolve_challenge(
                self.make_challenge(parsed, Challenge.SERVER_TRUST)))

        response = self.session.post(url, data=data, headers=headers, **kwargs)

        if response.status_code == 401 and self.credential_delegate is not None \
           and 'WWW-Authenticate' in response.headers:
            challenge = self.make_challenge(
                parsed, Challenge.HTTP_BASIC,
                realm=response.headers['WWW-Authenticate'],
                previous_failure_count=int('auth' in kwargs))
            extra = self.resolve_challenge(challenge)
            if extra:
                kwargs.update(extra)
                response = self.session.post(
                    url, data=data, headers=headers, **kwargs)

        if response.status_code == 429:
            raise RateLimited(
                'Rate limited by %s' % (parsed.hostname,),
                retry_after=parse_retry_after(
                    response.headers.get('Retry-After')))

        if response.status_code >= 400:
            raise TransmissionFailure(
                response.headers.get('X-Sentry-Error')
                or response.reason or 'HTTP error',
                code=response.status_code)

        return response

    def close(self):
        self.session.close()
