"""
Composition graph over trait identifiers.

An edge ``A -> B`` means "trait A adopts trait B".  The graph refuses any
edge that would close a cycle and computes the flattened, order-preserving
closure of a trait's ledger:

- traversal is depth-first in declaration order, so records contributed by
  an adopted trait appear exactly where the adoption happened in the body;
- definitions are de-duplicated by name, the most recently encountered one
  wins and sits at its last-encountered position;
- invocations are never de-duplicated; distinct records with equal arguments
  all fire.

A trait reachable along more than one path (diamond adoption), or adopted
twice by the same body, contributes its records once, at its first visit;
later visits are skipped.

Usage::

    from traitcore.composition.graph import CompositionGraph
    from traitcore.composition.ledger import TraitLedger

    graph = CompositionGraph()
    locatable = TraitLedger("geo.Locatable", graph=graph)
    addressable = TraitLedger("crm.Addressable", graph=graph)
    addressable.adopt(locatable)
    composed = graph.closure(addressable)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Sequence, Union

from traitcore.composition.errors import CycleError
from traitcore.composition.records import (
    AdoptionStep,
    DefinitionRecord,
    InvocationRecord,
    LedgerStep,
)

if TYPE_CHECKING:
    from traitcore.composition.ledger import TraitLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComposedLedger:
    """Flattened records reachable from one trait, in replay order."""

    trait_id: str
    invocations: tuple[InvocationRecord, ...]
    definitions: tuple[DefinitionRecord, ...]
    traversal: tuple[str, ...]

    @property
    def traits(self) -> tuple[str, ...]:
        """Trait identifiers in first-visit order."""
        return self.traversal

    def definition(self, name: str) -> Optional[DefinitionRecord]:
        for record in self.definitions:
            if record.name == name:
                return record
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "trait": self.trait_id,
            "traits": list(self.traits),
            "invocations": [r.to_dict() for r in self.invocations],
            "definitions": [r.to_dict() for r in self.definitions],
        }


class CompositionGraph:
    """Directed acyclic graph of trait adoptions.

    Nodes are trait identifiers.  Ledgers register themselves on creation
    so the graph can resolve an identifier back to its ledger.
    """

    def __init__(self) -> None:
        self._ledgers: dict[str, TraitLedger] = {}
        self._edges: dict[str, list[str]] = {}

    def __contains__(self, trait_id: object) -> bool:
        return trait_id in self._ledgers

    def __len__(self) -> int:
        return len(self._ledgers)

    def register(self, ledger: TraitLedger) -> None:
        """Add or replace the node for ``ledger.trait_id``.

        Replacing a node (e.g. a module re-executed in the same process)
        drops every edge into and out of the previous ledger.  Adopters of
        the old ledger keep their snapshot of its steps.
        """
        existing = self._ledgers.get(ledger.trait_id)
        if existing is not None and existing is not ledger:
            logger.debug("Replacing trait node: %s", ledger.trait_id)
            self._drop_edges(ledger.trait_id)
        self._ledgers[ledger.trait_id] = ledger

    def discard(self, trait_id: str) -> None:
        """Remove a node and every edge touching it, if present."""
        self._ledgers.pop(trait_id, None)
        self._drop_edges(trait_id)

    def get(self, trait_id: str) -> Optional[TraitLedger]:
        return self._ledgers.get(trait_id)

    def trait_ids(self) -> list[str]:
        return list(self._ledgers)

    def add_edge(self, source: str, target: str) -> None:
        """Record that ``source`` adopts ``target``.

        Raises:
            CycleError: If ``target`` already reaches ``source``, including
                the self-adoption case ``source == target``.  The graph is
                not modified.
        """
        back_path = self.path(target, source)
        if back_path is not None:
            raise CycleError(source, target, [source, *back_path])

        adjacency = self._edges.setdefault(source, [])
        if target in adjacency:
            logger.debug("Adoption edge already present: %s -> %s", source, target)
            return
        adjacency.append(target)
        logger.debug("Adoption edge added: %s -> %s", source, target)

    def adopted_by(self, trait_id: str) -> tuple[str, ...]:
        """Traits directly adopted by ``trait_id``, in adoption order."""
        return tuple(self._edges.get(trait_id, ()))

    def edges(self) -> list[tuple[str, str]]:
        return [(src, dst) for src, targets in self._edges.items() for dst in targets]

    def path(self, source: str, target: str) -> Optional[list[str]]:
        """Return an adoption path from ``source`` to ``target`` or ``None``."""
        if source == target:
            return [source]
        stack: list[tuple[str, list[str]]] = [(source, [source])]
        seen = {source}
        while stack:
            node, trail = stack.pop()
            for nxt in self._edges.get(node, ()):
                if nxt == target:
                    return [*trail, nxt]
                if nxt not in seen:
                    seen.add(nxt)
                    stack.append((nxt, [*trail, nxt]))
        return None

    def reaches(self, source: str, target: str) -> bool:
        return self.path(source, target) is not None

    def closure(self, trait: Union[str, TraitLedger, Any]) -> ComposedLedger:
        """Flatten every record reachable from ``trait``.

        Args:
            trait: A trait identifier registered in this graph, a
                ``TraitLedger``, or an object exposing one as ``.ledger``.

        Raises:
            KeyError: If an identifier is not registered.
            CycleError: If the edges reachable from the trait contain a cycle.
        """
        if isinstance(trait, str):
            if trait not in self._ledgers:
                raise KeyError(f"Unknown trait: {trait}")
            ledger = self._ledgers[trait]
        else:
            ledger = getattr(trait, "ledger", trait)

        self._check_acyclic(ledger.trait_id)

        invocations: list[InvocationRecord] = []
        definitions: dict[str, DefinitionRecord] = {}
        traversal: list[str] = []

        def visit(trait_id: str, steps: Sequence[LedgerStep]) -> None:
            if trait_id in traversal:
                logger.debug(
                    "Trait %s already visited from %s; skipping", trait_id, ledger.trait_id
                )
                return
            traversal.append(trait_id)
            for step in steps:
                if isinstance(step, InvocationRecord):
                    invocations.append(step)
                elif isinstance(step, DefinitionRecord):
                    # Re-insert so the winner sits at its latest position.
                    definitions.pop(step.name, None)
                    definitions[step.name] = step
                else:
                    visit(step.trait_id, step.steps)

        visit(ledger.trait_id, ledger.steps)

        composed = ComposedLedger(
            trait_id=ledger.trait_id,
            invocations=tuple(invocations),
            definitions=tuple(definitions.values()),
            traversal=tuple(traversal),
        )
        logger.debug(
            "Closure of %s: traits=%d, invocations=%d, definitions=%d",
            ledger.trait_id,
            len(composed.traits),
            len(composed.invocations),
            len(composed.definitions),
        )
        return composed

    def clear(self) -> None:
        """Drop every node and edge (useful in tests)."""
        self._ledgers.clear()
        self._edges.clear()

    def _check_acyclic(self, root: str) -> None:
        """Raise ``CycleError`` if a cycle is reachable from ``root``."""
        visiting: list[str] = []
        done: set[str] = set()

        def walk(node: str) -> None:
            visiting.append(node)
            for nxt in self._edges.get(node, ()):
                if nxt in visiting:
                    cycle = visiting[visiting.index(nxt):] + [nxt]
                    raise CycleError(node, nxt, cycle)
                if nxt not in done:
                    walk(nxt)
            visiting.pop()
            done.add(node)

        walk(root)

    def _drop_edges(self, trait_id: str) -> None:
        self._edges.pop(trait_id, None)
        for targets in self._edges.values():
            if trait_id in targets:
                targets.remove(trait_id)


default_graph = CompositionGraph()
