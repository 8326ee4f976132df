import threading

import mock
import pytest

from kestrel.auth import (
    Challenge, Credential, CredentialDelegate, Disposition, consult)
from kestrel.exceptions import ChallengeTimeout
from kestrel.utils.testutils import TestCase


def make_challenge():
    return Challenge(Challenge.SERVER_TRUST, 'kestrel.local', 443, 'https')


class StaticDelegate(CredentialDelegate):
    def __init__(self, disposition):
        self.disposition = disposition

    def handle_challenge(self, challenge):
        return self.disposition


class DispositionTest(TestCase):
    def test_constructors(self):
        self.assertEqual(Disposition.perform_default().kind, Disposition.PERFORM_DEFAULT)
        self.assertEqual(Disposition.cancel().kind, Disposition.CANCEL)
        credential = Credential(user='foo')
        disposition = Disposition.use_credential(credential)
        self.assertEqual(disposition.kind, Disposition.USE_CREDENTIAL)
        assert disposition.credential is credential

    def test_use_credential_requires_credential(self):
        with pytest.raises(ValueError):
            Disposition(Disposition.USE_CREDENTIAL)

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            Disposition('proceed')

    def test_equality(self):
        assert Disposition.cancel() == Disposition.cancel()
        assert Disposition.cancel() != Disposition.perform_default()


class CredentialTest(TestCase):
    def test_empty(self):
        self.assertEqual(Credential().as_request_kwargs(), {})

    def test_all_fields(self):
        credential = Credential(user='foo', password='bar', cert='/etc/c.pem',
                                trust=False)
        self.assertEqual(credential.as_request_kwargs(), {
            'auth': ('foo', 'bar'),
            'cert': '/etc/c.pem',
            'verify': False,
        })


class ConsultTest(TestCase):
    def test_returns_disposition(self):
        disposition = Disposition.cancel()
        assert consult(StaticDelegate(disposition), make_challenge(), 1) is disposition

    def test_none_is_perform_default(self):
        result = consult(StaticDelegate(None), make_challenge(), 1)
        self.assertEqual(result.kind, Disposition.PERFORM_DEFAULT)

    def test_invalid_answer_cancels(self):
        with mock.patch('kestrel.auth.logger'):
            result = consult(StaticDelegate('yes'), make_challenge(), 1)
        self.assertEqual(result.kind, Disposition.CANCEL)

    def test_raising_delegate_cancels(self):
        delegate = mock.Mock()
        delegate.handle_challenge.side_effect = ValueError('boom')
        with mock.patch('kestrel.auth.logger') as logger:
            result = consult(delegate, make_challenge(), 1)
        self.assertEqual(result.kind, Disposition.CANCEL)
        assert logger.error.called

    def test_timeout(self):
        release = threading.Event()

        class BlockingDelegate(CredentialDelegate):
            def handle_challenge(self, challenge):
                release.wait(1)

        try:
            with pytest.raises(ChallengeTimeout):
                consult(BlockingDelegate(), make_challenge(), 0.05)
        finally:
            release.set()

    def test_base_delegate_is_abstract(self):
        with mock.patch('kestrel.auth.logger'):
            result = consult(CredentialDelegate(), make_challenge(), 1)
        self.assertEqual(result.kind, Disposition.CANCEL)
