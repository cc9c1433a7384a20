"""
Two-phase record-and-replay trait composition.

Traits record declarative invocations and static-operation definitions in
a ledger while they are authored; adoption flattens the ledger through the
composition graph and replays it onto the adopting class.

Public API::

    from traitcore.composition import (
        # Records
        InvocationRecord,
        DefinitionRecord,
        AdoptionStep,
        # Ledger and graph
        TraitLedger,
        CompositionGraph,
        ComposedLedger,
        default_graph,
        # Engine
        CompositionEngine,
        AdoptionResult,
        TypeAdapter,
        apply,
        # Guard
        RESERVED_NAMES,
        RESERVED_PREFIX,
        is_reserved,
        # Errors
        TraitError,
        CycleError,
        ReservedNameError,
        UnknownOperationError,
        UnsupportedAdoptionTargetError,
        LedgerSealedError,
        InvalidIdentifierError,
    )
"""

from traitcore.composition.engine import (
    AdoptionResult,
    CompositionEngine,
    TypeAdapter,
    adopted_traits,
    apply,
    default_engine,
)
from traitcore.composition.errors import (
    CycleError,
    InvalidIdentifierError,
    LedgerSealedError,
    ReservedNameError,
    TraitError,
    UnknownOperationError,
    UnsupportedAdoptionTargetError,
)
from traitcore.composition.graph import (
    ComposedLedger,
    CompositionGraph,
    default_graph,
)
from traitcore.composition.guard import (
    RESERVED_NAMES,
    RESERVED_PREFIX,
    check_definition_name,
    is_reserved,
)
from traitcore.composition.ledger import TraitLedger, ledger_of
from traitcore.composition.records import (
    AdoptionStep,
    DefinitionRecord,
    InvocationRecord,
)

__all__ = [
    # Records
    "InvocationRecord",
    "DefinitionRecord",
    "AdoptionStep",
    # Ledger and graph
    "TraitLedger",
    "ledger_of",
    "CompositionGraph",
    "ComposedLedger",
    "default_graph",
    # Engine
    "CompositionEngine",
    "AdoptionResult",
    "TypeAdapter",
    "adopted_traits",
    "apply",
    "default_engine",
    # Guard
    "RESERVED_NAMES",
    "RESERVED_PREFIX",
    "check_definition_name",
    "is_reserved",
    # Errors
    "TraitError",
    "CycleError",
    "ReservedNameError",
    "UnknownOperationError",
    "UnsupportedAdoptionTargetError",
    "LedgerSealedError",
    "InvalidIdentifierError",
]
