"""
Composition engine: replays a trait's flattened ledger onto an adopter.

``CompositionEngine.apply`` is the single entry point of an adoption.
It works in two stages:

1. **Stage**: compute the closure through the composition graph,
   re-check every definition name against the reserved-name guard and
   resolve every invocation on the adopter.  Nothing is mutated; any
   ``CycleError``, ``ReservedNameError`` or ``UnknownOperationError``
   is raised here.
2. **Replay**: dispatch every invocation in closure order, then install
   every definition in closure order as a native classmethod/staticmethod
   on the adopter.

Adopting a trait onto another (unsealed) trait is forwarded to the
ledger's ``adopt`` so both adoption forms go through one call.

Usage::

    from traitcore.composition.engine import CompositionEngine

    engine = CompositionEngine()
    result = engine.apply(Contact, Addressable)
    result.definitions_installed  # ["merge_duplicates"]
"""

from __future__ import annotations

import logging
import types
from typing import Any, Callable, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from traitcore.composition.errors import (
    UnknownOperationError,
    UnsupportedAdoptionTargetError,
)
from traitcore.composition.graph import ComposedLedger
from traitcore.composition.guard import RESERVED_PREFIX, check_definition_name
from traitcore.composition.ledger import TraitLedger, ledger_of
from traitcore.composition.otel import emit_adoption_failure, emit_adoption_result
from traitcore.config import TraitCoreConfig, get_config
from traitcore.logger import CompositionLogger

logger = logging.getLogger(__name__)

ADOPTED_ATTRIBUTE = f"{RESERVED_PREFIX}adopted"

_MISSING = object()


# ---------------------------------------------------------------------------
# Result model
# ---------------------------------------------------------------------------


class AdoptionResult(BaseModel):
    """Outcome of replaying one trait onto one class."""

    model_config = ConfigDict(extra="forbid")

    entity: str = Field(..., description="Qualified name of the adopting class")
    trait_id: str = Field(..., description="Trait that was applied")
    invocations_dispatched: int = Field(
        0, description="Number of invocation records dispatched"
    )
    definitions_installed: list[str] = Field(
        default_factory=list,
        description="Static operations installed, in installation order",
    )
    shadowed: list[str] = Field(
        default_factory=list,
        description="Installed names that replaced an attribute defined on the class",
    )
    traits: list[str] = Field(
        default_factory=list,
        description="Distinct traits replayed, in traversal order",
    )


# ---------------------------------------------------------------------------
# Adopting-entity adapter
# ---------------------------------------------------------------------------


class TypeAdapter:
    """Exposes a Python class through the two capabilities adoption needs.

    - ``invoke`` dispatches a named operation already resolvable on the
      class (inherited or previously installed).
    - ``install_static_operation`` binds a callable in the class namespace.
    """

    def __init__(self, entity: type) -> None:
        if not isinstance(entity, type):
            raise UnsupportedAdoptionTargetError(entity)
        self._entity = entity

    @property
    def entity(self) -> type:
        return self._entity

    @property
    def name(self) -> str:
        return f"{self._entity.__module__}.{self._entity.__qualname__}"

    def resolve(self, name: str, trait_id: Optional[str] = None) -> Callable[..., Any]:
        operation = getattr(self._entity, name, _MISSING)
        if operation is _MISSING or not callable(operation):
            raise UnknownOperationError(self._entity, name, trait_id)
        return operation

    def invoke(
        self,
        name: str,
        args: Sequence[Any] = (),
        kwargs: Optional[Mapping[str, Any]] = None,
        block: Optional[Callable[..., Any]] = None,
    ) -> Any:
        """Call ``name`` on the class; ``block`` is passed after ``args``."""
        operation = self.resolve(name)
        call_args = tuple(args) if block is None else (*args, block)
        return operation(*call_args, **dict(kwargs or {}))

    def defines(self, name: str) -> bool:
        """True if ``name`` is set in the class's own namespace."""
        return name in vars(self._entity)

    def install_static_operation(self, name: str, body: Callable[..., Any]) -> None:
        """Bind ``body`` on the class as if it had been written there."""
        setattr(self._entity, name, _as_descriptor(body, self._entity, name))

    def mark_adopted(self, trait_id: str) -> None:
        adopted = vars(self._entity).get(ADOPTED_ATTRIBUTE, ())
        setattr(self._entity, ADOPTED_ATTRIBUTE, (*adopted, trait_id))


def _as_descriptor(body: Any, owner: type, name: str) -> Any:
    if isinstance(body, (classmethod, staticmethod)):
        return type(body)(_rebind(body.__func__, owner, name))
    return classmethod(_rebind(body, owner, name))


def _rebind(func: Any, owner: type, name: str) -> Any:
    """Copy ``func`` so its name and qualname belong to ``owner``.

    Each adopter gets its own function object; the trait's original body
    is never mutated.  Non-function callables are returned unchanged.
    """
    if not isinstance(func, types.FunctionType):
        return func
    clone = types.FunctionType(
        func.__code__,
        func.__globals__,
        name,
        func.__defaults__,
        func.__closure__,
    )
    clone.__kwdefaults__ = dict(func.__kwdefaults__) if func.__kwdefaults__ else None
    clone.__dict__.update(func.__dict__)
    clone.__doc__ = func.__doc__
    clone.__annotations__ = dict(func.__annotations__)
    clone.__qualname__ = f"{owner.__qualname__}.{name}"
    clone.__module__ = owner.__module__
    return clone


def adopted_traits(entity: type) -> tuple[str, ...]:
    """Trait identifiers applied directly to ``entity``, in order."""
    return tuple(vars(entity).get(ADOPTED_ATTRIBUTE, ()))


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class CompositionEngine:
    """Applies traits to classes.

    Args:
        config: Settings to use; defaults to ``get_config()`` at apply time.
        events: Structured event logger; one is created per apply when
            omitted.
    """

    def __init__(
        self,
        config: Optional[TraitCoreConfig] = None,
        events: Optional[CompositionLogger] = None,
    ) -> None:
        self._config = config
        self._events = events

    def apply(
        self,
        adopting_entity: Any,
        trait: Any,
        on_applied: Optional[Callable[[type, AdoptionResult], Any]] = None,
    ) -> Optional[AdoptionResult]:
        """Replay ``trait`` onto ``adopting_entity``.

        Args:
            adopting_entity: A class, or an unsealed trait/ledger.
            trait: The trait (or its ledger) to apply.
            on_applied: Called as ``on_applied(entity, result)`` after a
                successful replay onto a class.

        Returns:
            ``AdoptionResult`` for a class, ``None`` when the adopter is a
            trait (the adoption is recorded in its ledger instead).

        Raises:
            UnsupportedAdoptionTargetError: If the adopter is not a class
                or trait.
            CycleError: If the composition graph is cyclic.
            ReservedNameError: If a definition uses a reserved name.
            UnknownOperationError: If an invocation cannot be resolved.
        """
        trait_ledger = ledger_of(trait)

        if _is_trait(adopting_entity):
            ledger_of(adopting_entity).adopt(trait_ledger)
            return None
        if not isinstance(adopting_entity, type):
            raise UnsupportedAdoptionTargetError(adopting_entity)

        config = self._config or get_config()
        events = self._events or CompositionLogger()
        adapter = TypeAdapter(adopting_entity)

        try:
            composed = trait_ledger.graph.closure(trait_ledger)
            self._stage(adapter, composed)
            result = self._replay(adapter, composed, config, events)
        except Exception as exc:
            events.log_adoption_failed(
                trait_id=trait_ledger.trait_id,
                entity=adapter.name,
                error_type=type(exc).__name__,
                message=str(exc),
            )
            if config.emit_span_events:
                emit_adoption_failure(trait_ledger.trait_id, adapter.name, exc)
            raise

        events.log_trait_adopted(
            trait_id=result.trait_id,
            entity=result.entity,
            invocations_dispatched=result.invocations_dispatched,
            definitions_installed=result.definitions_installed,
            shadowed=result.shadowed,
        )
        if config.emit_span_events:
            emit_adoption_result(result)
        logger.info(
            "Applied trait %s to %s: %d invocation(s), %d definition(s)",
            result.trait_id,
            result.entity,
            result.invocations_dispatched,
            len(result.definitions_installed),
        )

        if on_applied is not None:
            on_applied(adopting_entity, result)
        return result

    def _stage(self, adapter: TypeAdapter, composed: ComposedLedger) -> None:
        """Validate the whole closure against the adopter without mutating it."""
        for definition in composed.definitions:
            check_definition_name(definition.name, definition.trait_id)
        for invocation in composed.invocations:
            adapter.resolve(invocation.name, invocation.trait_id)
        logger.debug(
            "Staged %s for %s: %d invocation(s), %d definition(s)",
            composed.trait_id,
            adapter.name,
            len(composed.invocations),
            len(composed.definitions),
        )

    def _replay(
        self,
        adapter: TypeAdapter,
        composed: ComposedLedger,
        config: TraitCoreConfig,
        events: CompositionLogger,
    ) -> AdoptionResult:
        for invocation in composed.invocations:
            logger.debug("Dispatching %s on %s", invocation.describe(), adapter.name)
            adapter.invoke(
                invocation.name, invocation.args, invocation.kwargs, invocation.block
            )

        installed: list[str] = []
        shadowed: list[str] = []
        for definition in composed.definitions:
            replaces = adapter.defines(definition.name)
            adapter.install_static_operation(definition.name, definition.body)
            installed.append(definition.name)
            if replaces:
                shadowed.append(definition.name)
                if config.warn_on_shadow:
                    logger.warning(
                        "Trait %s replaced %s.%s",
                        definition.trait_id,
                        adapter.name,
                        definition.name,
                    )
            events.log_operation_installed(
                trait_id=definition.trait_id,
                entity=adapter.name,
                operation=definition.name,
                kind=definition.kind,
                shadowed=replaces,
            )

        adapter.mark_adopted(composed.trait_id)
        return AdoptionResult(
            entity=adapter.name,
            trait_id=composed.trait_id,
            invocations_dispatched=len(composed.invocations),
            definitions_installed=installed,
            shadowed=shadowed,
            traits=list(composed.traits),
        )


def _is_trait(obj: Any) -> bool:
    if isinstance(obj, type):
        return False
    return isinstance(obj, TraitLedger) or isinstance(getattr(obj, "ledger", None), TraitLedger)


default_engine = CompositionEngine()


def apply(
    adopting_entity: Any,
    trait: Any,
    on_applied: Optional[Callable[[type, AdoptionResult], Any]] = None,
) -> Optional[AdoptionResult]:
    """Apply ``trait`` with the module-level ``default_engine``."""
    return default_engine.apply(adopting_entity, trait, on_applied=on_applied)
