"""
Authoring front-end: define traits with a body function, adopt them with
a class decorator.

A trait body receives a ``TraitBuilder``.  Attribute calls on the builder
are recorded as invocations, ``adopt`` splices in another trait at that
point of the body, and ``static`` records a static operation.  The trait's
ledger is sealed when the body returns.

Example::

    from traitcore import adopts, trait

    @trait
    def Locatable(t):
        t.validates("x_coordinate", numericality=True)
        t.validates("y_coordinate", numericality=True)

    @trait
    def Addressable(t):
        t.adopt(Locatable)
        t.validates("city", presence=True)
        t.validates("state", presence=True)

        @t.static
        def merge_duplicates(cls):
            ...

    @adopts(Addressable)
    class Contact(Model):
        ...

    Contact.merge_duplicates()

``block=`` is the one keyword the builder keeps for itself: it is stored
as the invocation's trailing callback rather than as a keyword argument.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Optional, TypeVar, Union, overload

from traitcore.composition.engine import AdoptionResult, adopted_traits, apply
from traitcore.composition.errors import ReservedNameError
from traitcore.composition.graph import ComposedLedger, CompositionGraph
from traitcore.composition.ledger import TraitLedger
from traitcore.composition.records import DefinitionRecord, InvocationRecord
from traitcore.logger import CompositionLogger

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=type)
F = TypeVar("F")

__all__ = ["Trait", "TraitBuilder", "trait", "adopts", "adopted_traits"]


class Trait:
    """A sealed, reusable bundle of invocations and static operations."""

    def __init__(self, ledger: TraitLedger, doc: Optional[str] = None) -> None:
        self._ledger = ledger
        self.__doc__ = doc

    def __repr__(self) -> str:
        return f"<Trait {self.trait_id}>"

    @property
    def trait_id(self) -> str:
        return self._ledger.trait_id

    @property
    def ledger(self) -> TraitLedger:
        return self._ledger

    @property
    def adopted_traits(self) -> tuple[str, ...]:
        """Traits adopted directly in this trait's body."""
        return self._ledger.adopted

    def closure(self) -> ComposedLedger:
        return self._ledger.graph.closure(self._ledger)

    def apply(
        self,
        entity: Any,
        on_applied: Optional[Callable[[type, AdoptionResult], Any]] = None,
    ) -> Optional[AdoptionResult]:
        """Apply this trait to ``entity`` (see ``CompositionEngine.apply``)."""
        return apply(entity, self, on_applied=on_applied)


class TraitBuilder:
    """Recording surface handed to a trait body.

    Any public attribute resolves to a recorder for an invocation of that
    name, so ``t.validates("city", presence=True)`` captures
    ``validates("city", presence=True)`` for later replay.
    """

    def __init__(self, ledger: TraitLedger) -> None:
        self._ledger = ledger
        self._rejected: list[ReservedNameError] = []

    def __getattr__(self, name: str) -> Callable[..., InvocationRecord]:
        if name.startswith("_"):
            raise AttributeError(name)
        return functools.partial(self.send, name)

    @property
    def trait_id(self) -> str:
        return self._ledger.trait_id

    @property
    def rejected(self) -> tuple[ReservedNameError, ...]:
        """Definitions refused by the reserved-name guard, in body order."""
        return tuple(self._rejected)

    def adopt(self, *traits: Any) -> None:
        for other in traits:
            self._ledger.adopt(other)

    def send(
        self,
        name: str,
        *args: Any,
        block: Optional[Callable[..., Any]] = None,
        **kwargs: Any,
    ) -> InvocationRecord:
        """Record an invocation of ``name``; use this for builder-owned names."""
        return self._ledger.record_invocation(name, args, kwargs, block)

    def static(self, target: Union[str, Any, None] = None) -> Any:
        """Record a static operation.

        Usable as ``@t.static``, ``@t.static("name")`` or ``t.static(fn)``.
        The decorated object is returned unchanged.  A reserved name is
        refused without interrupting the body; ``trait`` reports it once the
        body has finished.
        """
        if target is None or isinstance(target, str):
            explicit = target

            def decorator(body: F) -> F:
                self._define(explicit, body)
                return body

            return decorator
        self._define(None, target)
        return target

    def _define(self, name: Optional[str], body: Any) -> Optional[DefinitionRecord]:
        if name is None:
            func = body.__func__ if isinstance(body, (classmethod, staticmethod)) else body
            name = getattr(func, "__name__", None)
            if name is None:
                raise TypeError(
                    f"Cannot infer an operation name from {body!r}; pass one explicitly"
                )
        try:
            return self._ledger.record_definition(name, body)
        except ReservedNameError as exc:
            logger.warning("Trait %s: %s", self.trait_id, exc)
            self._rejected.append(exc)
            return None


@overload
def trait(body: Callable[[TraitBuilder], Any]) -> Trait: ...


@overload
def trait(
    body: None = None,
    *,
    name: Optional[str] = None,
    graph: Optional[CompositionGraph] = None,
) -> Callable[[Callable[[TraitBuilder], Any]], Trait]: ...


def trait(
    body: Optional[Callable[[TraitBuilder], Any]] = None,
    *,
    name: Optional[str] = None,
    graph: Optional[CompositionGraph] = None,
) -> Any:
    """Build a ``Trait`` by running ``body`` once against a builder.

    Args:
        body: Function taking a ``TraitBuilder``.
        name: Trait identifier; defaults to ``module.qualname`` of ``body``.
        graph: Composition graph to register in; defaults to ``default_graph``.

    If the body raises, the half-built trait is removed from the graph and
    the exception propagates.

    Definitions refused by the reserved-name guard do not stop the body.
    The trait is sealed and registered with every other record, then a
    ``ReservedNameError`` is raised for the first refused name; its
    ``trait`` attribute holds the built ``Trait`` and ``rejected`` lists
    every refused name.
    """

    def build(fn: Callable[[TraitBuilder], Any]) -> Trait:
        trait_id = name or f"{fn.__module__}.{fn.__qualname__}"
        ledger = TraitLedger(trait_id, graph=graph)
        builder = TraitBuilder(ledger)
        try:
            fn(builder)
        except Exception:
            ledger.graph.discard(trait_id)
            raise
        ledger.seal()
        CompositionLogger().log_trait_sealed(
            trait_id=trait_id,
            invocations=len(ledger.invocations),
            definitions=len(ledger.definitions),
            adopted=list(ledger.adopted),
        )
        built = Trait(ledger, doc=fn.__doc__)
        if builder.rejected:
            error = builder.rejected[0]
            error.trait = built
            error.rejected = tuple(e.name for e in builder.rejected)
            raise error
        return built

    if body is None:
        return build
    return build(body)


def adopts(
    *traits: Any,
    on_applied: Optional[Callable[[type, AdoptionResult], Any]] = None,
) -> Callable[[C], C]:
    """Class decorator applying ``traits`` in order at class creation."""

    def decorator(cls: C) -> C:
        for each in traits:
            apply(cls, each, on_applied=on_applied)
        return cls

    return decorator
