"""
Structured logging for composition events.

Emits one line per composition event on the ``traitcore.events`` logger.
With ``log_format="json"`` (the default) each line is a JSON object
suitable for log aggregation; with ``"text"`` it is a ``key=value`` line
for consoles.

The library attaches only a ``NullHandler``: events reach the host
program's own logging configuration, or stdout once ``configure_logging()``
runs with ``emit_events`` enabled.

Logged events:
- trait.sealed
- trait.adopted
- trait.adoption_failed
- operation.installed

Usage:
    from traitcore.logger import CompositionLogger

    events = CompositionLogger()
    events.log_trait_sealed(trait_id="crm.Addressable", invocations=2, definitions=1, adopted=["geo.Locatable"])
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from traitcore.config import get_config

EVENTS_LOGGER = "traitcore.events"

_events_logger = logging.getLogger(EVENTS_LOGGER)
_events_logger.addHandler(logging.NullHandler())


class CompositionLogger:
    """
    Structured logger for trait composition events.

    Each entry carries the same base fields (timestamp, level, event,
    service, trait_id) so that adoption history can be filtered per trait.
    """

    def __init__(
        self,
        service_name: Optional[str] = None,
        log_format: Optional[str] = None,
        extra_labels: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize composition logger.

        Args:
            service_name: Service name for log attribution (config default)
            log_format: "json" or "text" (config default)
            extra_labels: Additional labels attached to every entry
        """
        config = get_config()
        self.service_name = service_name or config.service_name
        self.log_format = log_format or config.log_format
        self.extra_labels = extra_labels or {}
        self._logger = _events_logger

    def _emit(
        self,
        event: str,
        trait_id: str,
        level: str = "info",
        **extra_fields: Any,
    ) -> None:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "service": self.service_name,
            "trait_id": trait_id,
        }
        entry.update({k: v for k, v in extra_fields.items() if v is not None})
        if self.extra_labels:
            entry["labels"] = self.extra_labels

        if self.log_format == "text":
            line = " ".join(f"{k}={v}" for k, v in entry.items())
        else:
            line = json.dumps(entry, default=str)

        if level == "error":
            self._logger.error(line)
        elif level == "warn":
            self._logger.warning(line)
        else:
            self._logger.info(line)

    def log_trait_sealed(
        self,
        trait_id: str,
        invocations: int,
        definitions: int,
        adopted: Optional[List[str]] = None,
    ) -> None:
        """Log that a trait finished authoring."""
        self._emit(
            event="trait.sealed",
            trait_id=trait_id,
            invocations=invocations,
            definitions=definitions,
            adopted=adopted or [],
        )

    def log_trait_adopted(
        self,
        trait_id: str,
        entity: str,
        invocations_dispatched: int,
        definitions_installed: List[str],
        shadowed: Optional[List[str]] = None,
    ) -> None:
        """Log a completed adoption."""
        self._emit(
            event="trait.adopted",
            trait_id=trait_id,
            entity=entity,
            invocations_dispatched=invocations_dispatched,
            definitions_installed=definitions_installed,
            shadowed=shadowed or None,
        )

    def log_adoption_failed(
        self,
        trait_id: str,
        entity: str,
        error_type: str,
        message: str,
    ) -> None:
        """Log an adoption that raised before or during replay."""
        self._emit(
            event="trait.adoption_failed",
            trait_id=trait_id,
            level="error",
            entity=entity,
            error_type=error_type,
            message=message,
        )

    def log_operation_installed(
        self,
        trait_id: str,
        entity: str,
        operation: str,
        kind: str,
        shadowed: bool = False,
    ) -> None:
        """Log a single static operation installed on an adopter."""
        self._emit(
            event="operation.installed",
            trait_id=trait_id,
            level="warn" if shadowed else "info",
            entity=entity,
            operation=operation,
            kind=kind,
            shadowed=shadowed,
        )
