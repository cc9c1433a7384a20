"""
Immutable records captured while a trait body is authored.

Two record kinds make up a trait's ledger:

- ``InvocationRecord``: one declarative call (``validates("city", presence=True)``)
  to be dispatched against every adopting type.
- ``DefinitionRecord``: one static operation to be installed on every
  adopting type.

``AdoptionStep`` marks the point in a trait body where another trait was
adopted, together with that trait's steps as they stood at that moment.

Usage::

    from traitcore.composition.records import InvocationRecord

    record = InvocationRecord.capture(
        "validates", ("x_coordinate",), {"numericality": True}, trait_id="geo.Locatable",
    )
    record.describe()  # "validates('x_coordinate', numericality=True)"
"""

from __future__ import annotations

import keyword
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Union

from traitcore.composition.errors import InvalidIdentifierError

_EMPTY_KWARGS: Mapping[str, Any] = MappingProxyType({})


def validate_identifier(name: Any) -> str:
    """Return ``name`` if it is a usable operation name, else raise."""
    if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
        raise InvalidIdentifierError(name)
    return name


@dataclass(frozen=True)
class InvocationRecord:
    """A captured declarative call.

    Attributes:
        name: Operation to resolve on the adopting type.
        args: Positional arguments, in call order.
        kwargs: Read-only keyword arguments.
        block: Optional trailing callback passed after ``args``.
        trait_id: Trait whose body captured the call.
    """

    name: str
    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=lambda: _EMPTY_KWARGS)
    block: Optional[Callable[..., Any]] = None
    trait_id: str = ""

    @classmethod
    def capture(
        cls,
        name: str,
        args: tuple[Any, ...] | list[Any] = (),
        kwargs: Optional[Mapping[str, Any]] = None,
        block: Optional[Callable[..., Any]] = None,
        trait_id: str = "",
    ) -> InvocationRecord:
        """Validate and freeze a call into a record."""
        validate_identifier(name)
        if block is not None and not callable(block):
            raise TypeError(f"Block for '{name}' must be callable, got {type(block).__name__}")
        frozen_kwargs = MappingProxyType(dict(kwargs)) if kwargs else _EMPTY_KWARGS
        return cls(
            name=name,
            args=tuple(args),
            kwargs=frozen_kwargs,
            block=block,
            trait_id=trait_id,
        )

    def describe(self) -> str:
        parts = [repr(a) for a in self.args]
        parts.extend(f"{k}={v!r}" for k, v in self.kwargs.items())
        if self.block is not None:
            parts.append(f"<block {getattr(self.block, '__name__', 'callable')}>")
        return f"{self.name}({', '.join(parts)})"

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a plain dict for JSON/YAML emission."""
        return {
            "name": self.name,
            "args": [repr(a) for a in self.args],
            "kwargs": {k: repr(v) for k, v in self.kwargs.items()},
            "block": getattr(self.block, "__name__", None) if self.block else None,
            "trait": self.trait_id,
        }


@dataclass(frozen=True)
class DefinitionRecord:
    """A captured static-operation definition.

    ``body`` is stored opaquely.  Plain functions are installed as
    classmethods on the adopter; ``staticmethod``/``classmethod`` objects
    are installed as they are.
    """

    name: str
    body: Callable[..., Any]
    trait_id: str = ""

    @property
    def kind(self) -> str:
        if isinstance(self.body, staticmethod):
            return "staticmethod"
        return "classmethod"

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "kind": self.kind, "trait": self.trait_id}


@dataclass(frozen=True)
class AdoptionStep:
    """Marks the adoption of ``trait_id`` inside another trait's body."""

    trait_id: str
    steps: tuple[LedgerStep, ...]


LedgerStep = Union[InvocationRecord, DefinitionRecord, AdoptionStep]
