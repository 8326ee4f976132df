"""
kestrel.auth
~~~~~~~~~~~~

Authentication challenges raised by the transport, and the delegate
applications plug in to answer them.

>>> class PinnedTrust(CredentialDelegate):
>>>     def handle_challenge(self, challenge):
>>>         if challenge.method == Challenge.SERVER_TRUST:
>>>             return Disposition.use_credential(
>>>                 Credential(trust='/etc/ssl/kestrel-ca.pem'))
>>>         return Disposition.perform_default()

:copyright: (c) 2026 by the Kestrel Team, see AUTHORS for more details.
:license: BSD, see LICENSE for more details.
"""
import logging
import threading

from kestrel.exceptions import ChallengeTimeout

__all__ = ('Challenge', 'Credential', 'CredentialDelegate', 'Disposition',
           'consult')

logger = logging.getLogger('kestrel.errors')


class Challenge(object):
    SERVER_TRUST = 'server_trust'
    HTTP_BASIC = 'http_basic'

    def __init__(self, method, host, port, protocol, realm=None,
                 previous_failure_count=0):
        self.method = method
        self.host = host
        self.port = port
        self.protocol = protocol
        self.realm = realm
        self.previous_failure_count = previous_failure_count

    def __repr__(self):
        return '<%s: %s %s://%s:%s>' % (
            type(self).__name__, self.method, self.protocol, self.host,
            self.port)


class Credential(object):
    """
    Credentials handed back to the transport.

    - ``user`` / ``password``: HTTP basic authentication
    - ``cert``: client certificate, a path or a ``(cert, key)`` tuple
    - ``trust``: CA bundle path used to validate the server instead of
      the platform default, or ``False`` to skip validation
    """

    def __init__(self, user=None, password=None, cert=None, trust=None):
        self.user = user
        self.password = password
        self.cert = cert
        self.trust = trust

    def as_request_kwargs(self):
        kwargs = {}
        if self.user is not None:
            kwargs['auth'] = (self.user, self.password or '')
        if self.cert is not None:
            kwargs['cert'] = self.cert
        if self.trust is not None:
            kwargs['verify'] = self.trust
        return kwargs


class Disposition(object):
    PERFORM_DEFAULT = 'perform_default'
    USE_CREDENTIAL = 'use_credential'
    CANCEL = 'cancel'

    def __init__(self, kind, credential=None):
        if kind not in (self.PERFORM_DEFAULT, self.USE_CREDENTIAL, self.CANCEL):
            raise ValueError('Unknown disposition: %r' % (kind,))
        if kind == self.USE_CREDENTIAL and credential is None:
            raise ValueError('use_credential requires a credential')
        self.kind = kind
        self.credential = credential

    def __repr__(self):
        return '<%s: %s>' % (type(self).__name__, self.kind)

    def __eq__(self, other):
        return isinstance(other, Disposition) and \
            (self.kind, self.credential) == (other.kind, other.credential)

    def __hash__(self):
        return hash((self.kind, id(self.credential)))

    @classmethod
    def perform_default(cls):
        return cls(cls.PERFORM_DEFAULT)

    @classmethod
    def use_credential(cls, credential):
        return cls(cls.USE_CREDENTIAL, credential)

    @classmethod
    def cancel(cls):
        return cls(cls.CANCEL)


class CredentialDelegate(object):
    """
    Delegates are consulted synchronously by the transport whenever a
    connection to the ingestion endpoint is challenged. They must answer
    quickly: a delegate that does not return within the challenge timeout
    is treated as having cancelled.
    """

    def handle_challenge(self, challenge):
        raise NotImplementedError


def consult(delegate, challenge, timeout):
    """
    Asks ``delegate`` to handle ``challenge`` and returns a
    :class:`Disposition`.

    Raises :class:`ChallengeTimeout` when the delegate did not answer
    within ``timeout`` seconds.
    """
    result = {}

    def target():
        try:
            result['value'] = delegate.handle_challenge(challenge)
        except Exception:
            logger.error('Credential delegate failed handling %r', challenge,
                         exc_info=True)
            result['value'] = Disposition.cancel()

    thread = threading.Thread(target=target, name='kestrel-challenge')
    thread.daemon = True
    thread.start()
    thread.join(timeout)

    if 'value' not in result:
        raise ChallengeTimeout(
            'Credential delegate did not answer %r within %ss' % (
                challenge, timeout))

    disposition = result['value']
    if disposition is None:
        return Disposition.perform_default()
    if not isinstance(disposition, Disposition):
        logger.error('Credential delegate returned %r, cancelling',
                     disposition)
        return Disposition.cancel()
    return disposition
