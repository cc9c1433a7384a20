"""
Reserved-name guard for static-operation definitions.

Definitions recorded by a trait are installed directly on every adopting
class, so a definition named after one of the engine's own control
operations would shadow the adoption machinery.  The guard rejects, at
authoring time:

- names in ``RESERVED_NAMES`` (the engine's control surface),
- names starting with ``RESERVED_PREFIX`` (engine-internal attributes such
  as ``_trait_ledger``),
- dunder names, which would replace Python protocol methods on the adopter.

Usage::

    from traitcore.composition.guard import check_definition_name

    check_definition_name("merge_duplicates", "crm.Addressable")  # ok
    check_definition_name("apply", "crm.Addressable")  # ReservedNameError
"""

from __future__ import annotations

from typing import Optional

from traitcore.composition.errors import ReservedNameError

RESERVED_PREFIX = "_trait_"

RESERVED_NAMES: frozenset[str] = frozenset(
    {
        "apply",
        "adopt",
        "record_invocation",
        "record_definition",
        "seal",
        "closure",
        "ledger",
        "trait_id",
        "send",
        "static",
    }
)


def reserved_reason(name: str) -> Optional[str]:
    """Why ``name`` is reserved, or ``None`` if it may be defined."""
    if name in RESERVED_NAMES:
        return "name belongs to the trait engine's control surface"
    if name.startswith(RESERVED_PREFIX):
        return f"prefix '{RESERVED_PREFIX}' is reserved for engine internals"
    if len(name) > 4 and name.startswith("__") and name.endswith("__"):
        return "dunder names cannot be installed as class-level operations"
    return None


def is_reserved(name: str) -> bool:
    return reserved_reason(name) is not None


def check_definition_name(name: str, trait_id: str) -> None:
    """Raise ``ReservedNameError`` if ``name`` may not be defined by a trait."""
    reason = reserved_reason(name)
    if reason is not None:
        raise ReservedNameError(name, trait_id, reason)
