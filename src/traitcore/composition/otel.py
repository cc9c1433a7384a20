"""
OTel span event emission helpers for trait adoption.

Follows the shared ``add_span_event()`` pattern: events are attached to
whatever span is current when an adoption runs (typically an application
start-up span), and are dropped when that span is not recording.

Usage::

    from traitcore.composition.otel import (
        emit_adoption_failure,
        emit_adoption_result,
    )

    emit_adoption_result(result)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from traitcore._otel_helpers import add_span_event

if TYPE_CHECKING:
    from traitcore.composition.engine import AdoptionResult

logger = logging.getLogger(__name__)


def emit_adoption_result(result: AdoptionResult) -> None:
    """Emit a span event summarising a completed adoption.

    Event name: ``trait.adoption.complete``
    """
    attrs: dict[str, str | int | float | bool | list[str]] = {
        "trait.id": result.trait_id,
        "trait.entity": result.entity,
        "trait.invocations_dispatched": result.invocations_dispatched,
        "trait.definitions_installed": len(result.definitions_installed),
        "trait.traits": list(result.traits),
    }
    if result.shadowed:
        attrs["trait.shadowed"] = list(result.shadowed)

    logger.debug(
        "Adoption complete: %s onto %s (%d invocation(s), %d definition(s))",
        result.trait_id,
        result.entity,
        result.invocations_dispatched,
        len(result.definitions_installed),
    )
    add_span_event("trait.adoption.complete", attrs)


def emit_adoption_failure(trait_id: str, entity: str, error: BaseException) -> None:
    """Emit a span event for an adoption that raised.

    Event name: ``trait.adoption.failed``
    """
    attrs: dict[str, str | int | float | bool | list[str]] = {
        "trait.id": trait_id,
        "trait.entity": entity,
        "trait.error_type": type(error).__name__,
        "trait.error_message": str(error),
    }
    logger.warning(
        "Adoption failed: %s onto %s [%s] %s",
        trait_id,
        entity,
        type(error).__name__,
        error,
    )
    add_span_event("trait.adoption.failed", attrs)
