"""
Per-trait ledger of recorded invocations, definitions and adoptions.

A ledger is populated while its trait body is authored and sealed when
authoring completes.  Sealed ledgers are immutable and are only ever read
by adopters.

Usage::

    from traitcore.composition.ledger import TraitLedger

    locatable = TraitLedger("geo.Locatable")
    locatable.record_invocation("validates", ("x_coordinate",), {"numericality": True})
    locatable.seal()

    addressable = TraitLedger("crm.Addressable")
    addressable.adopt(locatable)
    addressable.record_definition("merge_duplicates", merge_duplicates)
    addressable.seal()
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Sequence

from traitcore.composition.errors import LedgerSealedError
from traitcore.composition.graph import CompositionGraph, default_graph
from traitcore.composition.guard import check_definition_name
from traitcore.composition.records import (
    AdoptionStep,
    DefinitionRecord,
    InvocationRecord,
    LedgerStep,
    validate_identifier,
)

logger = logging.getLogger(__name__)


class TraitLedger:
    """Ordered record of everything a trait body declares.

    The ledger keeps a single step sequence so that authoring order is
    preserved across the three step kinds.  ``invocations`` and
    ``definitions`` expose only the trait's own records; adopted records
    are reached through ``CompositionGraph.closure``.

    Args:
        trait_id: Unique identifier of the owning trait.
        graph: Graph used for adoption edges.  Defaults to the module-level
            ``default_graph``.
    """

    def __init__(self, trait_id: str, graph: Optional[CompositionGraph] = None) -> None:
        if not isinstance(trait_id, str) or not trait_id:
            raise ValueError(f"Trait identifier must be a non-empty string, got {trait_id!r}")
        self._trait_id = trait_id
        self._graph = graph if graph is not None else default_graph
        self._steps: list[LedgerStep] = []
        self._sealed = False
        self._graph.register(self)

    def __repr__(self) -> str:
        state = "sealed" if self._sealed else "open"
        return f"<TraitLedger {self._trait_id} steps={len(self._steps)} {state}>"

    @property
    def trait_id(self) -> str:
        return self._trait_id

    @property
    def graph(self) -> CompositionGraph:
        return self._graph

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def steps(self) -> tuple[LedgerStep, ...]:
        """Snapshot of the step sequence."""
        return tuple(self._steps)

    @property
    def invocations(self) -> tuple[InvocationRecord, ...]:
        return tuple(s for s in self._steps if isinstance(s, InvocationRecord))

    @property
    def definitions(self) -> tuple[DefinitionRecord, ...]:
        return tuple(s for s in self._steps if isinstance(s, DefinitionRecord))

    @property
    def adopted(self) -> tuple[str, ...]:
        return tuple(s.trait_id for s in self._steps if isinstance(s, AdoptionStep))

    def record_invocation(
        self,
        name: str,
        args: Sequence[Any] = (),
        kwargs: Optional[Mapping[str, Any]] = None,
        block: Optional[Callable[..., Any]] = None,
    ) -> InvocationRecord:
        """Append a declarative call to replay on every adopter.

        Raises:
            InvalidIdentifierError: If ``name`` is not a valid identifier.
            LedgerSealedError: If the ledger has been sealed.
        """
        self._ensure_open("record_invocation")
        record = InvocationRecord.capture(
            name, tuple(args), kwargs, block, trait_id=self._trait_id
        )
        self._steps.append(record)
        logger.debug("Recorded invocation on %s: %s", self._trait_id, record.describe())
        return record

    def record_definition(self, name: str, body: Callable[..., Any]) -> DefinitionRecord:
        """Record a static operation, replacing any earlier one of the same name.

        A rejected definition leaves the ledger unchanged; authoring may
        continue with further definitions.

        Raises:
            InvalidIdentifierError: If ``name`` is not a valid identifier.
            ReservedNameError: If ``name`` is reserved by the engine.
            TypeError: If ``body`` is not callable.
            LedgerSealedError: If the ledger has been sealed.
        """
        self._ensure_open("record_definition")
        validate_identifier(name)
        check_definition_name(name, self._trait_id)
        if not (callable(body) or isinstance(body, (classmethod, staticmethod))):
            raise TypeError(
                f"Definition '{name}' on trait '{self._trait_id}' must be callable, "
                f"got {type(body).__name__}"
            )

        record = DefinitionRecord(name=name, body=body, trait_id=self._trait_id)
        kept = [
            s for s in self._steps
            if not (isinstance(s, DefinitionRecord) and s.name == name)
        ]
        if len(kept) != len(self._steps):
            self._steps = kept
            logger.debug("Definition %s.%s redefined", self._trait_id, name)
        self._steps.append(record)
        logger.debug("Recorded definition on %s: %s", self._trait_id, name)
        return record

    def adopt(self, other: Any) -> None:
        """Splice ``other``'s current records in at this point of the body.

        The adoption edge is added to the graph before the ledger is
        touched, so a ``CycleError`` leaves both ledgers unchanged.
        Adopting a trait this ledger already adopts is a no-op.

        Args:
            other: A ``TraitLedger`` or an object exposing one as ``.ledger``.
        """
        self._ensure_open("adopt")
        other_ledger = ledger_of(other)
        if other_ledger.trait_id in self.adopted:
            logger.debug("Trait %s already adopts %s", self._trait_id, other_ledger.trait_id)
            return
        if other_ledger.trait_id not in self._graph:
            self._graph.register(other_ledger)
        self._graph.add_edge(self._trait_id, other_ledger.trait_id)
        self._steps.append(AdoptionStep(other_ledger.trait_id, other_ledger.steps))
        logger.debug("Trait %s adopted %s", self._trait_id, other_ledger.trait_id)

    def seal(self) -> None:
        """Freeze the ledger.  Idempotent."""
        if self._sealed:
            return
        self._steps = tuple(self._steps)  # type: ignore[assignment]
        self._sealed = True
        logger.debug("Sealed ledger %s with %d step(s)", self._trait_id, len(self._steps))

    def _ensure_open(self, operation: str) -> None:
        if self._sealed:
            raise LedgerSealedError(self._trait_id, operation)


def ledger_of(trait: Any) -> TraitLedger:
    """Return the ledger behind ``trait``.

    Raises:
        TypeError: If ``trait`` is neither a ledger nor exposes one.
    """
    if isinstance(trait, TraitLedger):
        return trait
    ledger = getattr(trait, "ledger", None)
    if isinstance(ledger, TraitLedger):
        return ledger
    raise TypeError(f"{trait!r} is not a trait")
