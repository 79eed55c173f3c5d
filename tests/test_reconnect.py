"""Tests for the auto-reconnect supervisor."""

import logging
import threading
from unittest.mock import MagicMock

from redom.errors import CDPConnectionError
from redom.services import ReconnectSupervisor


def make_supervisor(reconnect=None, delay=0.0) -> ReconnectSupervisor:
    return ReconnectSupervisor(reconnect or MagicMock(), delay=delay)


class TestHandleClose:
    def test_unarmed_does_nothing(self):
        reconnect = MagicMock()
        supervisor = make_supervisor(reconnect)

        assert supervisor._handle_close(1006, "gone") is False
        reconnect.assert_not_called()

    def test_armed_reconnects_once(self):
        reconnect = MagicMock()
        supervisor = make_supervisor(reconnect)
        supervisor.arm()

        assert supervisor._handle_close(1006, "gone") is True
        reconnect.assert_called_once_with()

    def test_waits_for_delay(self, monkeypatch):
        sleeps = []
        monkeypatch.setattr("redom.services.reconnect.time.sleep", sleeps.append)
        supervisor = make_supervisor(delay=2.5)
        supervisor.arm()

        supervisor._handle_close(1006, "gone")

        assert sleeps == [2.5]

    def test_disarmed_during_delay(self, monkeypatch):
        reconnect = MagicMock()
        supervisor = make_supervisor(reconnect, delay=1.0)
        supervisor.arm()
        monkeypatch.setattr("redom.services.reconnect.time.sleep", lambda seconds: supervisor.disarm())

        assert supervisor._handle_close(1006, "gone") is False
        reconnect.assert_not_called()

    def test_failed_reconnect_is_logged_not_retried(self, caplog):
        reconnect = MagicMock(side_effect=CDPConnectionError("Chrome is gone"))
        supervisor = make_supervisor(reconnect)
        supervisor.arm()

        assert supervisor._handle_close(1006, "gone") is False
        assert reconnect.call_count == 1
        assert "Auto-reconnect failed: Chrome is gone" in caplog.text

    def test_cancelled_reconnect_is_not_success(self, caplog):
        caplog.set_level(logging.INFO, logger="redom")
        supervisor = make_supervisor(MagicMock(return_value=False))
        supervisor.arm()

        assert supervisor._handle_close(1006, "gone") is False
        assert "Reconnected" not in caplog.text


class TestThread:
    def test_notification_runs_reconnect_on_supervisor_thread(self):
        done = threading.Event()
        threads = []

        def reconnect():
            threads.append(threading.current_thread().name)
            done.set()
            return True

        supervisor = make_supervisor(reconnect)
        supervisor.start()
        supervisor.arm()
        try:
            supervisor.notify_closed(1006, "gone")
            assert done.wait(timeout=2)
        finally:
            supervisor.stop()

        assert threads == ["redom-reconnect"]

    def test_start_is_idempotent(self):
        supervisor = make_supervisor()
        supervisor.start()
        first = supervisor._thread
        supervisor.start()
        try:
            assert supervisor._thread is first
        finally:
            supervisor.stop()

        assert not first.is_alive()
        assert not supervisor.armed

    def test_stop_without_start(self):
        make_supervisor().stop()
