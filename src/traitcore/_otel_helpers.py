"""
Shared OTel span event emission helper.

Provides ``add_span_event()``, used by ``composition/otel.py`` to attach
adoption events to whatever span is current when a trait is applied.

Usage::

    from traitcore._otel_helpers import add_span_event

    add_span_event("trait.adoption.complete", {"trait.id": "crm.Addressable"})
"""

from __future__ import annotations

from opentelemetry import trace as otel_trace


def add_span_event(
    name: str, attributes: dict[str, str | int | float | bool | list[str]]
) -> None:
    """Add an event to the current OTel span if it is recording.

    Args:
        name: Event name (e.g. ``"trait.adoption.complete"``).
        attributes: Flat dict of span event attributes.
    """
    span = otel_trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name=name, attributes=attributes)
