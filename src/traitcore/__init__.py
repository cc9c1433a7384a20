"""
TraitCore - reusable traits that record declarations and replay them onto
adopting classes.

A trait bundles two kinds of content:
- declarative invocations (``validates("city", presence=True)``) that run
  against every class adopting the trait
- static operations that become classmethods on every adopting class

Traits may adopt other traits; adoption flattens the whole chain in
declaration order and replays it once.

Example usage:
    from traitcore import adopts, trait

    @trait
    def Addressable(t):
        t.validates("city", presence=True)

        @t.static
        def merge_duplicates(cls):
            ...

    @adopts(Addressable)
    class Contact(Model):
        ...
"""

__version__ = "0.1.0"
__all__ = [
    "trait",
    "adopts",
    "adopted_traits",
    "Trait",
    "TraitBuilder",
    "TraitLedger",
    "CompositionEngine",
    "CompositionGraph",
    "apply",
    "__version__",
]


# Lazy imports keep ``import traitcore`` free of pydantic/OTel loading
def __getattr__(name: str):
    if name in ("trait", "adopts", "adopted_traits", "Trait", "TraitBuilder"):
        from traitcore import authoring
        return getattr(authoring, name)
    if name == "TraitLedger":
        from traitcore.composition.ledger import TraitLedger
        return TraitLedger
    if name == "CompositionEngine":
        from traitcore.composition.engine import CompositionEngine
        return CompositionEngine
    if name == "CompositionGraph":
        from traitcore.composition.graph import CompositionGraph
        return CompositionGraph
    if name == "apply":
        from traitcore.composition.engine import apply
        return apply
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
