import time

import mock
import pytest
import requests

from kestrel.auth import Challenge, Credential, CredentialDelegate, Disposition
from kestrel.exceptions import ChallengeCancelled, RateLimited, TransmissionFailure
from kestrel.transport.exceptions import InvalidScheme
from kestrel.transport.http import HTTPTransport, parse_retry_after
from kestrel.utils.testutils import TestCase

URL = 'https://kestrel.local/api/1/store/'


def make_response(status_code=200, headers=None, reason='OK'):
    response = mock.Mock(spec=requests.Response)
    response.status_code = status_code
    response.headers = headers or {}
    response.reason = reason
    return response


class RecordingDelegate(CredentialDelegate):
    def __init__(self, *dispositions):
        self.dispositions = list(dispositions)
        self.challenges = []

    def handle_challenge(self, challenge):
        self.challenges.append(challenge)
        return self.dispositions.pop(0)


class HTTPTransportTest(TestCase):
    def make_transport(self, **kwargs):
        transport = HTTPTransport(**kwargs)
        transport.session = mock.Mock(spec=requests.Session)
        transport.session.post.return_value = make_response()
        return transport

    def test_does_send(self):
        transport = self.make_transport(timeout=3)
        transport.send(URL, b'data', {'Content-Type': 'application/json'})
        transport.session.post.assert_called_once_with(
            URL, data=b'data', headers={'Content-Type': 'application/json'},
            verify=True, timeout=3)

    def test_verify_ssl_with_ca_bundle(self):
        transport = self.make_transport(ca_certs='/etc/ca.pem')
        transport.send(URL, b'data', {})
        self.assertEqual(transport.session.post.call_args[1]['verify'], '/etc/ca.pem')

    def test_verify_ssl_disabled(self):
        transport = self.make_transport(verify_ssl=False, ca_certs='/etc/ca.pem')
        transport.send(URL, b'data', {})
        self.assertEqual(transport.session.post.call_args[1]['verify'], False)

    def test_invalid_scheme(self):
        transport = self.make_transport()
        with pytest.raises(InvalidScheme):
            transport.send('ftp://kestrel.local/api/1/store/', b'data', {})

    def test_rate_limited(self):
        transport = self.make_transport()
        transport.session.post.return_value = make_response(
            429, headers={'Retry-After': '42'})
        with pytest.raises(RateLimited) as excinfo:
            transport.send(URL, b'data', {})
        self.assertEqual(excinfo.value.retry_after, 42)
        self.assertEqual(excinfo.value.code, 429)

    def test_http_error(self):
        transport = self.make_transport()
        transport.session.post.return_value = make_response(
            500, headers={'X-Sentry-Error': 'broken'}, reason='Server Error')
        with pytest.raises(TransmissionFailure) as excinfo:
            transport.send(URL, b'data', {})
        self.assertEqual(excinfo.value.code, 500)
        self.assertEqual(excinfo.value.message, 'broken')

    def test_connection_error_propagates(self):
        transport = self.make_transport()
        transport.session.post.side_effect = requests.ConnectionError('down')
        with pytest.raises(requests.ConnectionError):
            transport.send(URL, b'data', {})

    def test_parse_retry_after(self):
        self.assertEqual(parse_retry_after('10'), 10)
        self.assertEqual(parse_retry_after(None), 0)
        self.assertEqual(parse_retry_after('Wed, 21 Oct 2015 07:28:00 GMT'), 0)


class HTTPTransportChallengeTest(TestCase):
    make_transport = HTTPTransportTest.make_transport

    def test_no_delegate_uses_platform_default(self):
        transport = self.make_transport()
        transport.send(URL, b'data', {})
        kwargs = transport.session.post.call_args[1]
        self.assertEqual(kwargs['verify'], True)
        assert 'cert' not in kwargs
        assert 'auth' not in kwargs

    def test_server_trust_challenge(self):
        delegate = RecordingDelegate(Disposition.perform_default())
        transport = self.make_transport(credential_delegate=delegate)
        transport.send(URL, b'data', {})
        challenge, = delegate.challenges
        self.assertEqual(challenge.method, Challenge.SERVER_TRUST)
        self.assertEqual(challenge.host, 'kestrel.local')
        self.assertEqual(challenge.port, 443)
        self.assertEqual(challenge.protocol, 'https')
        self.assertEqual(transport.session.post.call_args[1]['verify'], True)

    def test_plain_http_is_not_challenged(self):
        delegate = RecordingDelegate()
        transport = self.make_transport(credential_delegate=delegate)
        transport.send('http://kestrel.local:9000/api/1/store/', b'data', {})
        self.assertEqual(delegate.challenges, [])

    def test_use_credential(self):
        credential = Credential(cert=('/etc/client.pem', '/etc/client.key'),
                                trust='/etc/pinned-ca.pem')
        delegate = RecordingDelegate(Disposition.use_credential(credential))
        transport = self.make_transport(credential_delegate=delegate,
                                        ca_certs='/etc/ca.pem')
        transport.send(URL, b'data', {})
        kwargs = transport.session.post.call_args[1]
        self.assertEqual(kwargs['verify'], '/etc/pinned-ca.pem')
        self.assertEqual(kwargs['cert'], ('/etc/client.pem', '/etc/client.key'))

    def test_cancel(self):
        delegate = RecordingDelegate(Disposition.cancel())
        transport = self.make_transport(credential_delegate=delegate)
        with pytest.raises(ChallengeCancelled):
            transport.send(URL, b'data', {})
        assert not transport.session.post.called

    def test_delegate_timeout_cancels(self):
        class SlowDelegate(CredentialDelegate):
            def handle_challenge(self, challenge):
                time.sleep(1)

        transport = self.make_transport(credential_delegate=SlowDelegate(),
                                        challenge_timeout=0.05)
        with pytest.raises(ChallengeCancelled):
            transport.send(URL, b'data', {})
        assert not transport.session.post.called

    def test_http_basic_challenge(self):
        delegate = RecordingDelegate(
            Disposition.perform_default(),
            Disposition.use_credential(Credential(user='kestrel', password='pw')),
        )
        transport = self.make_transport(credential_delegate=delegate)
        transport.session.post.side_effect = [
            make_response(401, headers={'WWW-Authenticate': 'Basic realm="ingest"'}),
            make_response(200),
        ]
        transport.send(URL, b'data', {})
        trust, basic = delegate.challenges
        self.assertEqual(basic.method, Challenge.HTTP_BASIC)
        self.assertEqual(basic.realm, 'Basic realm="ingest"')
        self.assertEqual(basic.previous_failure_count, 0)
        self.assertEqual(transport.session.post.call_count, 2)
        self.assertEqual(transport.session.post.call_args[1]['auth'], ('kestrel', 'pw'))

    def test_http_basic_challenge_default_fails(self):
        delegate = RecordingDelegate(
            Disposition.perform_default(), Disposition.perform_default())
        transport = self.make_transport(credential_delegate=delegate)
        transport.session.post.return_value = make_response(
            401, headers={'WWW-Authenticate': 'Basic'}, reason='Unauthorized')
        with pytest.raises(TransmissionFailure) as excinfo:
            transport.send(URL, b'data', {})
        self.assertEqual(excinfo.value.code, 401)
        self.assertEqual(transport.session.post.call_count, 1)
