import logging
import os

import pytest
import structlog

import json_toolbox.core.services.metrics_service as metrics
from json_toolbox.core.services.json_conversion_service import JsonConversionService
from json_toolbox.core.services.json_format_service import JsonFormatService
from json_toolbox.core.services.json_repair_service import JsonRepairService


@pytest.fixture(autouse=True)
def _reset_metrics() -> None:
    metrics.reset()


@pytest.fixture
def json_repair_service() -> JsonRepairService:
    return JsonRepairService()


@pytest.fixture
def json_format_service() -> JsonFormatService:
    return JsonFormatService()


@pytest.fixture
def json_conversion_service() -> JsonConversionService:
    return JsonConversionService()


@pytest.fixture
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Run in an empty directory with no toolbox environment overrides."""
    for name in list(os.environ):
        if name.startswith("JSON_TOOLBOX_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def restore_logging():
    """Restore root logger state and structlog defaults after a test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    filters = root.filters[:]
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.filters[:] = filters
    root.setLevel(level)
    structlog.reset_defaults()
