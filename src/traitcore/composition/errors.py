"""
Exception hierarchy for trait composition.

Every error raised by the ledger, graph or engine derives from
``TraitError`` so callers performing adoption can catch the whole family
with one clause.  Errors carry the structured values that caused them
(trait identifiers, operation names, cycle paths) in addition to a
readable message.

None of these errors are retried: adoption is a one-shot, load-time
operation.
"""

from __future__ import annotations

from typing import Any, Sequence


class TraitError(Exception):
    """Base class for all trait composition errors."""


class CycleError(TraitError):
    """Raised when an adoption edge would make the composition graph cyclic.

    ``path`` is the chain of trait identifiers that closes the cycle,
    starting and ending with the trait that attempted the adoption.
    """

    def __init__(self, source: str, target: str, path: Sequence[str]) -> None:
        self.source = source
        self.target = target
        self.path = tuple(path)
        super().__init__(
            f"Trait '{source}' cannot adopt '{target}': "
            f"adoption cycle {' -> '.join(self.path)}"
        )


class ReservedNameError(TraitError):
    """Raised when a definition uses a name reserved by the engine.

    When raised by the ``@trait`` front-end, ``trait`` is the trait built
    from the rest of the body and ``rejected`` names every refused
    definition.
    """

    def __init__(self, name: str, trait_id: str, reason: str) -> None:
        self.name = name
        self.trait_id = trait_id
        self.reason = reason
        self.trait: Any = None
        self.rejected: tuple[str, ...] = (name,)
        super().__init__(
            f"Trait '{trait_id}' cannot define operation '{name}': {reason}"
        )


class UnknownOperationError(TraitError, AttributeError):
    """Raised when an invocation names an operation the adopter cannot resolve."""

    def __init__(self, entity: Any, name: str, trait_id: str | None = None) -> None:
        where = f" (recorded by trait '{trait_id}')" if trait_id else ""
        super().__init__(
            f"{_entity_name(entity)} has no operation '{name}'{where}"
        )
        # AttributeError.__init__ resets ``name``; assign after it.
        self.entity = entity
        self.name = name
        self.trait_id = trait_id


class UnsupportedAdoptionTargetError(TraitError, TypeError):
    """Raised when adoption targets something that is not a type or trait."""

    def __init__(self, target: Any) -> None:
        self.target = target
        super().__init__(
            f"Cannot adopt a trait onto {type(target).__name__} value "
            f"{target!r}: adoption targets must be classes or traits"
        )


class LedgerSealedError(TraitError):
    """Raised when a sealed trait ledger is mutated."""

    def __init__(self, trait_id: str, operation: str) -> None:
        self.trait_id = trait_id
        self.operation = operation
        super().__init__(
            f"Ledger for trait '{trait_id}' is sealed; {operation} is not allowed"
        )


class InvalidIdentifierError(TraitError, ValueError):
    """Raised when a recorded operation name is not a valid identifier."""

    def __init__(self, name: Any) -> None:
        self.name = name
        super().__init__(f"Invalid operation name: {name!r}")


def _entity_name(entity: Any) -> str:
    if isinstance(entity, type):
        return f"{entity.__module__}.{entity.__qualname__}"
    return repr(entity)
