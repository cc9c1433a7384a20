"""
Tests for CompositionLogger - structured logging of composition events.
"""

import json
import logging
import os
import subprocess
import sys
from io import StringIO
from pathlib import Path

import pytest

from traitcore.logger import CompositionLogger


@pytest.fixture
def captured_logs():
    """Capture log output for testing."""
    output = StringIO()
    return output


@pytest.fixture
def logger(captured_logs):
    """Create a CompositionLogger that writes to captured output."""
    logger = CompositionLogger(service_name="test-service")
    events_logger = logging.getLogger("traitcore.events")

    saved, saved_level = list(events_logger.handlers), events_logger.level
    events_logger.handlers.clear()
    handler = logging.StreamHandler(captured_logs)
    handler.setFormatter(logging.Formatter("%(message)s"))
    events_logger.addHandler(handler)
    events_logger.setLevel(logging.INFO)

    yield logger

    events_logger.handlers.clear()
    events_logger.handlers.extend(saved)
    events_logger.setLevel(saved_level)


def parse_log_line(captured_logs) -> dict:
    """Parse the last JSON log line."""
    captured_logs.seek(0)
    lines = captured_logs.read().strip().split("\n")
    if lines and lines[-1]:
        return json.loads(lines[-1])
    return {}


class TestTraitSealedLogs:
    """Tests for trait.sealed event logging."""

    def test_log_trait_sealed(self, logger, captured_logs):
        logger.log_trait_sealed(
            trait_id="crm.Addressable",
            invocations=2,
            definitions=1,
            adopted=["geo.Locatable"],
        )

        log = parse_log_line(captured_logs)
        assert log["event"] == "trait.sealed"
        assert log["trait_id"] == "crm.Addressable"
        assert log["service"] == "test-service"
        assert log["level"] == "info"
        assert log["invocations"] == 2
        assert log["definitions"] == 1
        assert log["adopted"] == ["geo.Locatable"]
        assert "timestamp" in log

    def test_adopted_defaults_to_empty(self, logger, captured_logs):
        logger.log_trait_sealed(trait_id="geo.Locatable", invocations=2, definitions=0)
        assert parse_log_line(captured_logs)["adopted"] == []


class TestAdoptionLogs:
    """Tests for adoption event logging."""

    def test_log_trait_adopted(self, logger, captured_logs):
        logger.log_trait_adopted(
            trait_id="crm.Addressable",
            entity="crm.Contact",
            invocations_dispatched=4,
            definitions_installed=["merge_duplicates"],
        )

        log = parse_log_line(captured_logs)
        assert log["event"] == "trait.adopted"
        assert log["entity"] == "crm.Contact"
        assert log["invocations_dispatched"] == 4
        assert log["definitions_installed"] == ["merge_duplicates"]
        # Empty shadow list is omitted.
        assert "shadowed" not in log

    def test_log_trait_adopted_with_shadowed(self, logger, captured_logs):
        logger.log_trait_adopted(
            trait_id="crm.Addressable",
            entity="crm.Contact",
            invocations_dispatched=0,
            definitions_installed=["merge_duplicates"],
            shadowed=["merge_duplicates"],
        )
        assert parse_log_line(captured_logs)["shadowed"] == ["merge_duplicates"]

    def test_log_adoption_failed(self, logger, captured_logs):
        logger.log_adoption_failed(
            trait_id="crm.Phoned",
            entity="crm.Contact",
            error_type="UnknownOperationError",
            message="crm.Contact has no operation 'has_many'",
        )

        log = parse_log_line(captured_logs)
        assert log["event"] == "trait.adoption_failed"
        assert log["level"] == "error"
        assert log["error_type"] == "UnknownOperationError"


class TestOperationInstalledLogs:
    """Tests for operation.installed event logging."""

    def test_log_operation_installed(self, logger, captured_logs):
        logger.log_operation_installed(
            trait_id="crm.Addressable",
            entity="crm.Contact",
            operation="merge_duplicates",
            kind="classmethod",
        )

        log = parse_log_line(captured_logs)
        assert log["event"] == "operation.installed"
        assert log["operation"] == "merge_duplicates"
        assert log["kind"] == "classmethod"
        assert log["shadowed"] is False
        assert log["level"] == "info"

    def test_shadowing_logs_warning(self, logger, captured_logs):
        logger.log_operation_installed(
            trait_id="crm.Addressable",
            entity="crm.Contact",
            operation="merge_duplicates",
            kind="classmethod",
            shadowed=True,
        )
        assert parse_log_line(captured_logs)["level"] == "warn"


class TestLoggerConfiguration:
    """Tests for formats, labels and config defaults."""

    def test_extra_labels(self, captured_logs, logger):
        labelled = CompositionLogger(extra_labels={"env": "test"})
        labelled.log_trait_sealed(trait_id="t", invocations=0, definitions=0)
        assert parse_log_line(captured_logs)["labels"] == {"env": "test"}

    def test_service_name_from_config(self, captured_logs, logger):
        CompositionLogger().log_trait_sealed(trait_id="t", invocations=0, definitions=0)
        assert parse_log_line(captured_logs)["service"] == "traitcore-test"

    def test_text_format(self, captured_logs, logger):
        text = CompositionLogger(service_name="svc", log_format="text")
        text.log_operation_installed(
            trait_id="crm.Addressable",
            entity="crm.Contact",
            operation="merge_duplicates",
            kind="classmethod",
        )

        line = captured_logs.getvalue().strip().splitlines()[-1]
        assert "event=operation.installed" in line
        assert "service=svc" in line
        assert "operation=merge_duplicates" in line
        with pytest.raises(json.JSONDecodeError):
            json.loads(line)


class TestLibraryOutput:
    """Importing and using the library leaves the host's stdout alone."""

    def test_events_logger_has_only_null_handler(self):
        events_logger = logging.getLogger("traitcore.events")
        CompositionLogger().log_trait_sealed(trait_id="t", invocations=0, definitions=0)
        assert events_logger.propagate is True
        assert all(isinstance(h, logging.NullHandler) for h in events_logger.handlers)

    def test_trait_and_adoption_write_nothing_to_stdout(self):
        script = (
            "from traitcore import adopts, trait\n"
            "\n"
            "@trait(name='geo.Locatable')\n"
            "def Locatable(t):\n"
            "    t.validates('x_coordinate')\n"
            "\n"
            "class Model:\n"
            "    @classmethod\n"
            "    def validates(cls, *args, **kwargs):\n"
            "        pass\n"
            "\n"
            "@adopts(Locatable)\n"
            "class Contact(Model):\n"
            "    pass\n"
        )
        src = Path(__file__).resolve().parents[1] / "src"
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(src), env.get("PYTHONPATH")]))

        result = subprocess.run(
            [sys.executable, "-c", script],
            capture_output=True,
            text=True,
            env=env,
            check=True,
        )
        assert result.stdout == ""
