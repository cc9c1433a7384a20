"""Tests for the @trait / @adopts authoring front-end."""

from __future__ import annotations

import json

import pytest

import traitcore
from traitcore import authoring
from traitcore.authoring import Trait, TraitBuilder, adopted_traits, adopts, trait
from traitcore.composition.errors import (
    CycleError,
    LedgerSealedError,
    ReservedNameError,
    UnknownOperationError,
)
from traitcore.composition.graph import default_graph


@pytest.fixture
def location_traits():
    @trait(name="geo.Locatable")
    def Locatable(t):
        """Coordinates on a map."""
        t.validates("x_coordinate", numericality=True)
        t.validates("y_coordinate", numericality=True)

    @trait(name="crm.Addressable")
    def Addressable(t):
        t.adopt(Locatable)
        t.validates("city", presence=True)
        t.validates("state", presence=True)

        @t.static
        def merge_duplicates(cls):
            return f"merged {cls.__name__}"

    return Locatable, Addressable


# ---------------------------------------------------------------------------
# End-to-end adoption
# ---------------------------------------------------------------------------


class TestAdoptsDecorator:
    def test_contact_adopts_addressable(self, location_traits, model_base):
        _, Addressable = location_traits

        @adopts(Addressable)
        class Contact(model_base):
            pass

        assert Contact.declarations == [
            ("validates", ("x_coordinate",), {"numericality": True}),
            ("validates", ("y_coordinate",), {"numericality": True}),
            ("validates", ("city",), {"presence": True}),
            ("validates", ("state",), {"presence": True}),
        ]
        assert Contact.merge_duplicates() == "merged Contact"
        assert adopted_traits(Contact) == ("crm.Addressable",)

    def test_multiple_traits_applied_in_order(self, location_traits, model_base):
        Locatable, _ = location_traits

        @trait(name="crm.Owned")
        def Owned(t):
            t.belongs_to("owner", optional=False)

        @adopts(Owned, Locatable)
        class Site(model_base):
            pass

        assert [d[0] for d in Site.declarations] == ["belongs_to", "validates", "validates"]
        assert adopted_traits(Site) == ("crm.Owned", "geo.Locatable")

    def test_subclass_inherits_installed_operation(self, location_traits, model_base):
        _, Addressable = location_traits

        @adopts(Addressable)
        class Contact(model_base):
            pass

        class Lead(Contact):
            pass

        assert Lead.merge_duplicates() == "merged Lead"
        assert adopted_traits(Lead) == ()

    def test_on_applied_callback(self, location_traits, model_base):
        _, Addressable = location_traits
        seen = []

        @adopts(Addressable, on_applied=lambda cls, result: seen.append((cls.__name__, result.traits)))
        class Contact(model_base):
            pass

        assert seen == [("Contact", ["crm.Addressable", "geo.Locatable"])]

    def test_unknown_operation_fails_class_creation(self, model_base):
        @trait(name="crm.Phoned")
        def Phoned(t):
            t.has_many("phones")

        with pytest.raises(UnknownOperationError):

            @adopts(Phoned)
            class Contact(model_base):
                pass

    def test_trait_apply_method(self, location_traits, model_base):
        Locatable, _ = location_traits

        class Marker(model_base):
            pass

        result = Locatable.apply(Marker)
        assert result.invocations_dispatched == 2

    def test_applying_onto_sealed_trait_rejected(self, location_traits):
        Locatable, Addressable = location_traits
        with pytest.raises(LedgerSealedError):
            Locatable.apply(Addressable)


# ---------------------------------------------------------------------------
# @trait
# ---------------------------------------------------------------------------


class TestTraitDecorator:
    def test_default_identifier_is_qualified_name(self):
        @trait
        def Taggable(t):
            t.validates("tags")

        assert isinstance(Taggable, Trait)
        assert Taggable.trait_id.endswith("test_default_identifier_is_qualified_name.<locals>.Taggable")
        assert Taggable.trait_id in default_graph

    def test_ledger_sealed_after_body(self, location_traits):
        Locatable, _ = location_traits
        assert Locatable.ledger.sealed

    def test_docstring_kept(self, location_traits):
        Locatable, _ = location_traits
        assert Locatable.__doc__ == "Coordinates on a map."

    def test_adopted_traits_reported(self, location_traits):
        _, Addressable = location_traits
        assert Addressable.adopted_traits == ("geo.Locatable",)

    def test_closure(self, location_traits):
        _, Addressable = location_traits
        composed = Addressable.closure()
        assert [r.args[0] for r in composed.invocations] == [
            "x_coordinate",
            "y_coordinate",
            "city",
            "state",
        ]
        assert [d.name for d in composed.definitions] == ["merge_duplicates"]

    def test_sealed_event_logged(self, captured_events):
        @trait(name="geo.Locatable")
        def Locatable(t):
            t.validates("x_coordinate")

            @t.static
            def nearest(cls):
                return None

        entry = json.loads(captured_events.getvalue().strip().splitlines()[-1])
        assert entry["event"] == "trait.sealed"
        assert entry["trait_id"] == "geo.Locatable"
        assert entry["invocations"] == 1
        assert entry["definitions"] == 1
        assert entry["service"] == "traitcore-test"

    def test_reserved_name_refused_rest_of_body_kept(self, model_base):
        with pytest.raises(ReservedNameError) as excinfo:

            @trait(name="crm.Mixed")
            def Mixed(t):
                t.validates("name", presence=True)

                @t.static
                def apply(cls):
                    return None

                @t.static
                def merge_duplicates(cls):
                    return f"merged {cls.__name__}"

                @t.static("__init__")
                def init(cls):
                    return None

                t.validates("email")

        error = excinfo.value
        assert error.trait_id == "crm.Mixed"
        assert error.name == "apply"
        assert error.rejected == ("apply", "__init__")
        assert "crm.Mixed" in default_graph

        built = error.trait
        assert isinstance(built, Trait)
        assert built.ledger.sealed
        assert [d.name for d in built.ledger.definitions] == ["merge_duplicates"]
        assert [r.args for r in built.ledger.invocations] == [("name",), ("email",)]

        @adopts(built)
        class Contact(model_base):
            pass

        assert Contact.merge_duplicates() == "merged Contact"
        assert "apply" not in vars(Contact)

    def test_body_failure_discards_node(self):
        with pytest.raises(RuntimeError, match="boom"):

            @trait(name="crm.Failing")
            def Failing(t):
                t.validates("name")
                raise RuntimeError("boom")

        assert "crm.Failing" not in default_graph

    def test_self_adoption_in_body(self):
        with pytest.raises(CycleError):

            @trait(name="crm.Recursive")
            def Recursive(t):
                t.adopt(default_graph.get("crm.Recursive"))


# ---------------------------------------------------------------------------
# TraitBuilder
# ---------------------------------------------------------------------------


class TestTraitBuilder:
    def test_send_records_builder_owned_names(self):
        @trait(name="t.Sending")
        def Sending(t):
            t.send("static", "value")

        records = Sending.ledger.invocations
        assert [(r.name, r.args) for r in records] == [("static", ("value",))]

    def test_block_keyword_becomes_block(self):
        def normalize(record):
            return record

        @trait(name="t.Blocked")
        def Blocked(t):
            t.before_save(block=normalize)

        record = Blocked.ledger.invocations[0]
        assert record.block is normalize
        assert dict(record.kwargs) == {}

    def test_static_forms(self):
        def dedupe(cls):
            return "dedupe"

        def ping():
            return "pong"

        @trait(name="t.Statics")
        def Statics(t):
            t.static("merge_duplicates")(dedupe)
            t.static(staticmethod(ping))

            @t.static()
            def find_nearby(cls, point):
                return point

        assert [(d.name, d.kind) for d in Statics.ledger.definitions] == [
            ("merge_duplicates", "classmethod"),
            ("ping", "staticmethod"),
            ("find_nearby", "classmethod"),
        ]

    def test_static_returns_body_unchanged(self):
        captured = {}

        @trait(name="t.Unchanged")
        def Unchanged(t):
            @t.static
            def merge_duplicates(cls):
                return None

            captured["body"] = merge_duplicates

        assert callable(captured["body"])
        assert Unchanged.ledger.definitions[0].body is captured["body"]

    def test_static_requires_a_name(self):
        class Nameless:
            def __call__(self, cls):
                return cls

        with pytest.raises(TypeError):

            @trait(name="t.Nameless")
            def NamelessTrait(t):
                t.static(Nameless())

    def test_private_attributes_not_recorded(self):
        builder = TraitBuilder(traitcore.TraitLedger("t.Private"))
        with pytest.raises(AttributeError):
            builder._hidden("x")
        assert builder.trait_id == "t.Private"


def test_package_exports_authoring_api():
    assert traitcore.trait is authoring.trait
    assert traitcore.adopts is authoring.adopts
    with pytest.raises(AttributeError):
        traitcore.does_not_exist
