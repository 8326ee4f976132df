import os
import threading
import time

import mock
import pytest

import kestrel
from kestrel import api
from kestrel.conf import ClientConfig
from kestrel.exceptions import InvalidConfig
from kestrel.utils.testutils import TEST_DSN, InMemoryTransport, TestCase


def start(**options):
    options.setdefault('transport', InMemoryTransport)
    return kestrel.start(dsn=TEST_DSN, **options)


class StartTest(TestCase):
    def test_missing_endpoint_raises(self):
        with mock.patch.dict(os.environ, clear=True):
            with pytest.raises(InvalidConfig):
                kestrel.start(dsn=None, transport=InMemoryTransport)
        assert api.get_client() is None

    def test_invalid_config_keeps_previous_client(self):
        client = start()
        with pytest.raises(InvalidConfig):
            kestrel.start(dsn='ftp://nope')
        assert api.get_client() is client
        assert client.is_started()

    def test_start_returns_handle(self):
        handle = start(debug=True, session_tracking_interval_ms=5000)
        assert api.get_client() is handle
        assert handle.is_started()
        handle.stop()
        assert not handle.is_started()
        assert not handle.worker.is_alive()

    def test_start_with_config(self):
        config = ClientConfig(dsn=TEST_DSN, transport=InMemoryTransport)
        client = kestrel.start(config)
        assert client.config is config

    def test_start_with_config_and_overrides(self):
        config = ClientConfig(dsn=TEST_DSN, transport=InMemoryTransport)
        client = kestrel.start(config, release='2.0')
        self.assertEqual(client.config.release, '2.0')
        assert config.release is None

    def test_restart_stops_previous_client_first(self):
        first = start(session_tracking_interval_ms=10)
        second = start(session_tracking_interval_ms=10)
        assert first is not second
        self.assertEqual(first.status, first.STOPPED)
        assert not first.worker.is_alive()
        self.assertEqual(first.worker.periodic_jobs, [])
        ticks = first.session_tracker.ticks
        time.sleep(0.1)
        self.assertEqual(first.session_tracker.ticks, ticks)
        assert second.session_tracker.ticks > 0
        assert api.get_client() is second

    def test_start_after_stop(self):
        first = start()
        kestrel.stop()
        second = start()
        assert second.is_started()
        self.assertEqual(first.status, first.STOPPED)

    def test_concurrent_starts_leave_one_active_client(self):
        clients = []

        def target():
            clients.append(start(session_tracking_interval_ms=10))

        threads = [threading.Thread(target=target) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        active = [c for c in clients if c.is_started()]
        self.assertEqual(active, [api.get_client()])


class StopTest(TestCase):
    def test_stop_without_start_is_noop(self):
        kestrel.stop()
        assert api.get_client() is None

    def test_start_then_stop_leaves_no_timer(self):
        client = start(session_tracking_interval_ms=10)
        kestrel.stop()
        kestrel.stop()
        assert not client.worker.is_alive()
        self.assertEqual(client.worker.periodic_jobs, [])


class ReportTest(TestCase):
    def test_report_without_client(self):
        assert kestrel.report({'message': 'hello'}) is None
        assert kestrel.capture_message('hello') is None
        assert kestrel.capture_exception() is None
        assert kestrel.add_breadcrumb('hello') is None
        assert kestrel.configure_scope(lambda scope: None) is None
        assert kestrel.flush() is False

    def test_dropping_filter_sends_nothing(self):
        client = start(before_send=lambda event: None,
                       enable_auto_session_tracking=False)
        for i in range(10):
            kestrel.report({'message': 'event %d' % i})
        kestrel.flush(2)
        self.assertEqual(client.transport.attempts, 0)

    def test_report_through_active_client(self):
        client = start(enable_auto_session_tracking=False)
        kestrel.configure_scope(lambda scope: scope.set_tag('tenant', 'a'))
        kestrel.add_breadcrumb('step one')
        event_id = kestrel.report({'message': 'hello'})
        assert kestrel.flush(2)
        event, = client.transport.events
        self.assertEqual(event['event_id'], event_id)
        self.assertEqual(event['tags'], {'tenant': 'a'})
        self.assertEqual(event['breadcrumbs']['values'][0]['message'], 'step one')

    def test_configure_scope_errors_are_logged(self):
        start(enable_auto_session_tracking=False)

        def callback(scope):
            raise ValueError('boom')

        assert kestrel.configure_scope(callback) is None
