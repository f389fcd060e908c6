"""Unit tests for example synthesis."""

import pytest

from models import (
    BehaviorModel,
    CallbackBinding,
    Constraint,
    Entity,
    NestedAttributeAcceptor,
    Polarity,
    RouteBinding,
    SchemaFact,
)
from regressor import build, entity_examples, synthesize


def summary(examples):
    return [(e.category, e.variant, e.polarity.value, e.fields.get("length")) for e in examples]


class TestScenarios:

    def test_foo_yields_four_examples(self, foo_model):
        examples = synthesize(foo_model)

        assert summary(examples) == [
            ("presence", None, "positive", None),
            ("length", "maximum", "positive", 255),
            ("length", "maximum", "negative", 256),
            ("relation", "belongs_to", "positive", None),
        ]
        assert examples[3].fields["name"] == "bar"
        assert examples[3].description == "belongs to bar"

    def test_route_yields_one_positive(self, make_fact):
        model = build([make_fact("models", "route", method="GET", path="/models/1", action="show")])

        examples = synthesize(model)

        assert len(examples) == 1
        route = examples[0]
        assert route.polarity == Polarity.POSITIVE
        assert route.fields == {
            "method": "GET", "verb": "get", "path": "/models/1",
            "target": "models", "action": "show",
        }

    def test_minimum_zero_has_no_lower_negative(self, title_length):
        examples = entity_examples(title_length(minimum=0, maximum=10))
        negatives = [e for e in examples if e.is_negative]
        assert [e.fields["length"] for e in negatives] == [11]

    def test_minimum_zero_without_maximum_emits_nothing(self, title_length):
        assert entity_examples(title_length(minimum=0)) == []


class TestLengthBounds:

    @pytest.mark.parametrize("maximum", [0, 1, 10, 255, 10_000])
    def test_maximum_boundary(self, title_length, maximum):
        examples = entity_examples(title_length(maximum=maximum))

        positives = [e.fields["length"] for e in examples if not e.is_negative]
        negatives = [e.fields["length"] for e in examples if e.is_negative]
        assert positives == [maximum]
        assert negatives == [maximum + 1]
        assert all(length >= 0 for length in negatives)

    def test_minimum_boundary(self, title_length):
        examples = entity_examples(title_length(minimum=3))
        assert summary(examples) == [
            ("length", "minimum", "positive", 3),
            ("length", "minimum", "negative", 2),
        ]

    def test_minimum_one_rejects_empty(self, title_length):
        negatives = [e for e in entity_examples(title_length(minimum=1)) if e.is_negative]
        assert [e.fields["length"] for e in negatives] == [0]

    def test_exact_length_shares_positive(self, title_length):
        examples = entity_examples(title_length(minimum=4, maximum=4))
        assert summary(examples) == [
            ("length", "maximum", "positive", 4),
            ("length", "maximum", "negative", 5),
            ("length", "minimum", "negative", 3),
        ]

    def test_fields_carry_bound(self, title_length):
        example = entity_examples(title_length(maximum=5))[0]
        assert example.fields["attribute"] == "title"
        assert example.fields["bound"] == "maximum"


class TestNumericality:

    def test_zero_minimum_is_a_real_bound(self):
        entity = Entity(name="Item", constraints=(
            Constraint(attribute="quantity", kind="numericality", minimum=0, maximum=99, only_integer=True),
        ))
        examples = entity_examples(entity)
        assert [(e.polarity.value, e.fields["value"]) for e in examples] == [
            ("positive", 99), ("negative", 100), ("positive", 0), ("negative", -1),
        ]
        assert examples[0].fields["only_integer"] is True


class TestOtherConstraints:

    def test_positive_only_kinds(self):
        entity = Entity(name="User", constraints=(
            Constraint(attribute="email", kind="uniqueness", scope=("account_id",)),
            Constraint(attribute="email", kind="format", pattern=r"\A\S+@\S+\z"),
            Constraint(attribute="email", kind="custom", validator="EmailDomainValidator"),
        ))
        examples = entity_examples(entity)

        assert [e.category for e in examples] == ["uniqueness", "format", "custom"]
        assert not any(e.is_negative for e in examples)
        assert examples[0].variant == "scoped"
        assert examples[0].fields["scope"] == ["account_id"]
        assert examples[0].description == "email is unique within account_id"

    def test_unscoped_uniqueness(self):
        entity = Entity(name="User", constraints=(Constraint(attribute="email", kind="uniqueness"),))
        assert entity_examples(entity)[0].variant is None

    def test_unset_fields_not_carried(self):
        entity = Entity(name="User", constraints=(Constraint(attribute="email", kind="custom"),))
        example = entity_examples(entity)[0]
        assert "validator" not in example.fields


class TestOtherFacets:

    def test_facet_order(self, make_fact):
        model = build([
            make_fact("Post", "callback", phase="after", hook="notify", event="save"),
            make_fact("Post", "route", method="GET", path="/posts", action="index"),
            make_fact("Post", "column", name="title", type="string", nullable=False),
            make_fact("Post", "nested_attributes", association="comments", allow_destroy=True),
            make_fact("Post", "relation", name="comments", cardinality="has_many"),
            make_fact("Post", "constraint", attribute="title", kind="presence"),
        ])
        categories = [e.category for e in synthesize(model)]
        assert categories == ["presence", "relation", "nested_attributes", "schema", "route", "callback"]

    def test_schema_examples(self):
        entity = Entity(name="Post", schema_facts=(
            SchemaFact(kind="column", name="title", declared_type="string", nullable=False),
            SchemaFact(kind="index", columns=("blog_id", "slug"), unique=True),
        ))
        column, index = entity_examples(entity)
        assert column.variant == "column"
        assert column.description == "has column title of type string (not null)"
        assert index.variant == "index"
        assert index.description == "has unique index on blog_id, slug"
        assert index.fields["columns"] == ["blog_id", "slug"]

    def test_nested_attributes(self):
        entity = Entity(name="Post", nested_attributes=(NestedAttributeAcceptor(association="comments"),))
        example = entity_examples(entity)[0]
        assert example.fields["association"] == "comments"
        assert example.description == "accepts nested attributes for comments"

    def test_callback_variants(self):
        entity = Entity(name="Post", callbacks=(
            CallbackBinding(phase="before", hook="strip"),
            CallbackBinding(phase="after", hook="notify", event="save"),
        ))
        plain, on_event = entity_examples(entity)
        assert plain.variant is None
        assert "event" not in plain.fields
        assert on_event.variant == "on_event"
        assert on_event.description == "runs notify after save"

    def test_route_description(self):
        entity = Entity(name="posts", routes=(
            RouteBinding(method="DELETE", path="/posts/<id>", entity="posts", action="destroy"),
        ))
        assert entity_examples(entity)[0].description == "routes DELETE /posts/<id> to posts#destroy"


class TestPurity:

    def test_same_model_same_examples(self, foo_model):
        assert synthesize(foo_model) == synthesize(foo_model)

    def test_empty_model(self):
        assert synthesize(BehaviorModel()) == []
