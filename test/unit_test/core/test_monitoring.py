"""
Unit tests for the Logfire monitoring module.

Covers configuration gating, instrumentation toggles, failure tolerance of
individual instrumentations and the no-op behaviour of the log helpers.
"""

from unittest.mock import MagicMock, patch

import pytest

from yoyo_mall.core import monitoring
from yoyo_mall.server.core.config import MonitoringConfig


@pytest.fixture(autouse=True)
def _reset_enabled(monkeypatch):
    monkeypatch.setattr(monitoring, "_enabled", False)


@pytest.fixture
def fake_logfire():
    with patch.object(monitoring, "logfire") as mocked:
        yield mocked


def _config(**fields) -> MonitoringConfig:
    values = {"enabled": True, "token": "lf-token"}
    values.update(fields)
    return MonitoringConfig(**values)


class TestInitializeLogfire:
    def test_disabled_by_default(self, fake_logfire):
        assert MonitoringConfig().enabled is False
        assert monitoring.initialize_logfire(config=MonitoringConfig()) is False
        fake_logfire.configure.assert_not_called()
        assert monitoring.is_enabled() is False

    def test_enabled_without_token(self, fake_logfire):
        assert monitoring.initialize_logfire(config=_config(token=None)) is False
        fake_logfire.configure.assert_not_called()

    def test_configures_and_instruments(self, fake_logfire):
        app = MagicMock()

        assert monitoring.initialize_logfire(app=app, config=_config(service_name="shop", sample_rate=0.5)) is True

        kwargs = fake_logfire.configure.call_args.kwargs
        assert kwargs["token"] == "lf-token"
        assert kwargs["service_name"] == "shop"
        fake_logfire.SamplingOptions.assert_called_once_with(head=0.5)
        fake_logfire.instrument_sqlalchemy.assert_called_once()
        fake_logfire.instrument_httpx.assert_called_once()
        fake_logfire.instrument_fastapi.assert_called_once_with(app=app)
        assert monitoring.is_enabled() is True

    def test_feature_flags(self, fake_logfire):
        monitoring.initialize_logfire(
            app=MagicMock(), config=_config(trace_sqlalchemy=False, trace_httpx=False, trace_fastapi=False)
        )

        fake_logfire.instrument_sqlalchemy.assert_not_called()
        fake_logfire.instrument_httpx.assert_not_called()
        fake_logfire.instrument_fastapi.assert_not_called()

    def test_fastapi_skipped_without_app(self, fake_logfire):
        monitoring.initialize_logfire(config=_config())
        fake_logfire.instrument_fastapi.assert_not_called()

    def test_instrumentation_failure_is_tolerated(self, fake_logfire):
        fake_logfire.instrument_sqlalchemy.side_effect = RuntimeError("missing extra")

        assert monitoring.initialize_logfire(config=_config()) is True
        fake_logfire.instrument_httpx.assert_called_once()


class TestLogHelpers:
    def test_noop_until_initialized(self, fake_logfire):
        monitoring.log_api_request("GET", "/health", 200, 1.5)
        monitoring.log_payment_event("refunded", "pay-1")
        monitoring.log_error("ValueError", "boom")

        fake_logfire.info.assert_not_called()
        fake_logfire.error.assert_not_called()

    def test_log_api_request(self, fake_logfire, monkeypatch):
        monkeypatch.setattr(monitoring, "_enabled", True)

        monitoring.log_api_request("POST", "/api/v1/orders", 201, 12.5)

        fake_logfire.info.assert_called_once_with(
            "API request completed", method="POST", path="/api/v1/orders", status_code=201, duration_ms=12.5
        )

    def test_log_payment_event(self, fake_logfire, monkeypatch):
        monkeypatch.setattr(monitoring, "_enabled", True)

        monitoring.log_payment_event("refunded", "pay-1", amount=10.0)

        fake_logfire.info.assert_called_once_with("Payment refunded", payment_id="pay-1", amount=10.0)

    def test_log_error(self, fake_logfire, monkeypatch):
        monkeypatch.setattr(monitoring, "_enabled", True)

        monitoring.log_error("KeyError", "missing", {"path": "/x"})

        fake_logfire.error.assert_called_once_with("KeyError: missing", path="/x")
