"""
Tests for the API launcher
"""
import logging
import threading
from datetime import timedelta

import pytest

from agenda_timer import server_runner
from agenda_timer.config import MeetingSettings
from agenda_timer.server_runner import dashboard_url, run_dashboard, uvicorn_log_level


@pytest.fixture
def served(monkeypatch):
    calls = []
    monkeypatch.setattr(
        server_runner.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs))
    )
    return calls


@pytest.mark.unit
class TestDashboardUrl:
    """Test the URL handed to the browser."""

    def test_local_host(self):
        assert dashboard_url("127.0.0.1", 8765) == "http://127.0.0.1:8765/docs"

    def test_wildcard_host_points_to_loopback(self):
        assert dashboard_url("0.0.0.0", 9000, "api/state") == "http://127.0.0.1:9000/api/state"

    def test_ipv6_host_is_bracketed(self):
        assert dashboard_url("::1", 8765, "/docs") == "http://[::1]:8765/docs"


@pytest.mark.unit
class TestRunDashboard:
    """Test how the server is started."""

    def test_explicit_log_level(self):
        assert uvicorn_log_level("DEBUG") == "debug"

    def test_log_level_follows_root_logger(self, monkeypatch):
        root = logging.getLogger()
        monkeypatch.setattr(root, "level", logging.DEBUG)
        assert uvicorn_log_level() == "debug"

    def test_settings_reach_the_app(self, served):
        settings = MeetingSettings(ignore_threshold=timedelta(seconds=9))
        run_dashboard(port=9100, settings=settings, open_browser=False, log_level="warning")

        app, kwargs = served[0]
        assert kwargs == {"host": "127.0.0.1", "port": 9100, "log_level": "warning"}
        assert app.state.session.settings is settings
        app.state.session.shutdown()

    def test_opens_browser(self, served, monkeypatch):
        opened = []
        done = threading.Event()

        def fake_open(url):
            opened.append(url)
            done.set()

        monkeypatch.setattr(server_runner, "BROWSER_DELAY_SECONDS", 0)
        monkeypatch.setattr(server_runner, "_open_browser", fake_open)
        run_dashboard(host="0.0.0.0", port=9101, browser_path="/api/state")

        assert done.wait(5)
        assert opened == ["http://127.0.0.1:9101/api/state"]
        served[0][0].state.session.shutdown()
