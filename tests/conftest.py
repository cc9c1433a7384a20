"""
Pytest configuration and fixtures for TraitCore tests.
"""

from __future__ import annotations

import io
import logging
import os
from typing import Dict, Generator, List
from unittest.mock import MagicMock, patch

import pytest

from traitcore.composition.graph import default_graph
from traitcore.config import reset_config


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def test_env() -> Dict[str, str]:
    """Test environment variables."""
    return {
        "TRAITCORE_SERVICE_NAME": "traitcore-test",
        "TRAITCORE_LOG_FORMAT": "json",
    }


@pytest.fixture(autouse=True)
def set_test_env(test_env: Dict[str, str]) -> Generator[None, None, None]:
    """Set test environment variables and reset global state for each test."""
    original = {}
    for key, value in test_env.items():
        original[key] = os.environ.get(key)
        os.environ[key] = value
    reset_config()
    default_graph.clear()

    yield

    default_graph.clear()
    reset_config()
    for key, value in original.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


# ============================================================================
# Adopter Fixtures
# ============================================================================


class RecordingModel:
    """Stand-in for a model base class exposing declarative class methods.

    Every declaration is appended to the subclass's own ``declarations``
    list as ``(operation, args, kwargs)``.
    """

    declarations: List[tuple] = []

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.declarations = []

    @classmethod
    def validates(cls, *attributes, **options):
        cls.declarations.append(("validates", attributes, options))

    @classmethod
    def belongs_to(cls, name, **options):
        cls.declarations.append(("belongs_to", (name,), options))

    @classmethod
    def before_save(cls, callback):
        cls.declarations.append(("before_save", (callback,), {}))


@pytest.fixture
def model_base() -> type:
    return RecordingModel


# ============================================================================
# Logging / OTel Fixtures
# ============================================================================


@pytest.fixture
def captured_events() -> Generator[io.StringIO, None, None]:
    """Capture structured composition event lines."""
    output = io.StringIO()
    events_logger = logging.getLogger("traitcore.events")
    saved, saved_level = list(events_logger.handlers), events_logger.level
    events_logger.handlers.clear()
    handler = logging.StreamHandler(output)
    handler.setFormatter(logging.Formatter("%(message)s"))
    events_logger.addHandler(handler)
    events_logger.setLevel(logging.INFO)

    yield output

    events_logger.handlers.clear()
    events_logger.handlers.extend(saved)
    events_logger.setLevel(saved_level)


@pytest.fixture
def mock_span() -> MagicMock:
    """Create a mock OTel span that is recording."""
    span = MagicMock()
    span.is_recording.return_value = True
    return span


@pytest.fixture
def mock_otel(mock_span: MagicMock) -> Generator[MagicMock, None, None]:
    """Patch OTel to return our mock span."""
    with patch("traitcore._otel_helpers.otel_trace") as mock_trace:
        mock_trace.get_current_span.return_value = mock_span
        yield mock_span
