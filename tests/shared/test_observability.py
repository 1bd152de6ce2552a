# tests/shared/test_observability.py
from unittest.mock import MagicMock

import pytest

from deepzoom_ingest.shared import observability
from deepzoom_ingest.shared.config import settings

@pytest.fixture
def sdk(monkeypatch):
    """Replaces the OpenTelemetry SDK pieces so no exporter is ever started."""
    monkeypatch.setattr(observability, "_configured", False)
    monkeypatch.setattr(settings, "DEBUG", False)
    fakes = {
        "TracerProvider": MagicMock(),
        "BatchSpanProcessor": MagicMock(),
        "OTLPSpanExporter": MagicMock(),
    }
    for name, fake in fakes.items():
        monkeypatch.setattr(observability, name, fake)
    fakes["set_tracer_provider"] = MagicMock()
    monkeypatch.setattr(observability.trace, "set_tracer_provider", fakes["set_tracer_provider"])
    return fakes

class TestSetupTelemetry:
    def test_disabled_without_endpoint(self, sdk, monkeypatch):
        monkeypatch.setattr(settings, "OTEL_EXPORTER_OTLP_ENDPOINT", None)

        assert observability.setup_telemetry("deepzoom-ingest") is False
        sdk["TracerProvider"].assert_not_called()
        sdk["set_tracer_provider"].assert_not_called()

    def test_provider_is_installed_once(self, sdk, monkeypatch):
        """
        Scenario: Several jobs in one process each call setup_telemetry.
        Expected: One provider and one exporter; later calls are no-ops.
        """
        # Arrange
        monkeypatch.setattr(settings, "OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4318")

        # Act
        results = [observability.setup_telemetry("deepzoom-ingest") for _ in range(3)]

        # Assert
        assert results == [True, True, True]
        sdk["OTLPSpanExporter"].assert_called_once_with(endpoint="http://collector:4318/v1/traces")
        sdk["TracerProvider"].assert_called_once()
        sdk["set_tracer_provider"].assert_called_once_with(sdk["TracerProvider"].return_value)
