"""Tests for the containment graph and the element index."""

import pytest

from containment import (
    build_element_index,
    find_containers,
    find_where_used,
    get_element,
    search_universe,
    trace_dependencies,
)
from models import Component, Field, HygraphSchema, Model, UnionType


def _component(name, *fields):
    return Component(name, name, name.lower() + "s", tuple(fields))


@pytest.fixture
def badge_schema():
    """Card embeds Badge; no model references Badge directly."""
    return HygraphSchema(
        models=(Model("Page", "Page", "pages", (Field("card", "Card"),)),),
        components=(
            _component("Badge", Field("label", "String")),
            _component("Card", Field("title", "String"), Field("badge", "Badge")),
        ),
    )


class TestFindContainers:
    """Tests for transitive container search."""

    def test_direct_and_transitive_containers(self, schema):
        assert find_containers("Button", schema, max_hops=0) == {"HeroBlock", "Card"}
        assert find_containers("Button", schema) == {"HeroBlock", "Card", "Gallery", "Section"}

    def test_union_membership_counts_as_containment(self, schema):
        # Section.content is PageBlock, which includes HeroBlock
        assert find_containers("HeroBlock", schema) == {"Section"}

    def test_monotonic_in_max_hops(self, schema):
        previous = set()
        for hops in range(5):
            current = find_containers("Button", schema, max_hops=hops)
            assert previous <= current
            previous = current

    def test_nested_only_component(self, badge_schema):
        assert "Card" in find_containers("Badge", badge_schema, max_hops=1)

    def test_mutual_recursion_terminates(self):
        schema = HygraphSchema(
            components=(
                _component("Left", Field("right", "Right")),
                _component("Right", Field("left", "Left")),
            )
        )
        assert find_containers("Left", schema, max_hops=50) == {"Left", "Right"}

    def test_explicit_unions_override_schema_unions(self):
        schema = HygraphSchema(
            components=(
                _component("Text", Field("body", "String")),
                _component("Column", Field("content", "Block")),
            ),
        )
        assert find_containers("Text", schema) == set()
        assert find_containers("Text", schema, unions=[UnionType("Block", ("Text",))]) == {"Column"}

    def test_search_universe(self):
        assert search_universe("Badge", {"Card"}) == {"Badge", "Card"}


class TestElementIndex:
    """Tests for the element index and static references."""

    def test_index_contents(self, schema):
        elements = build_element_index(schema)
        kinds = {e.name: e.kind for e in elements}
        assert kinds == {
            "Button": "component",
            "HeroBlock": "component",
            "Card": "component",
            "Gallery": "component",
            "Section": "component",
            "Page": "model",
            "Post": "model",
            "Author": "model",
            "Theme": "enum",
            "Tag": "enum",
        }

    def test_enum_description(self, schema):
        theme = get_element(schema, "Theme")
        assert theme.kind == "enum"
        assert theme.description == "Values: LIGHT, DARK"
        assert set(theme.used_in) == {"Page", "HeroBlock"}

    def test_system_elements_skipped(self):
        schema = HygraphSchema(
            models=(
                Model("Page", "Page", "pages", (Field("title", "String"),)),
                Model("PageBodyRichText", "PageBodyRichText", "pageBodyRichTexts"),
            ),
            components=(_component("RGBA", Field("r", "Int")),),
        )
        assert [e.name for e in build_element_index(schema)] == ["Page"]

    def test_get_element_filters_by_kind(self, schema):
        assert get_element(schema, "Theme", "component") is None
        assert get_element(schema, "Missing") is None

    def test_find_where_used(self, schema):
        assert set(find_where_used("Button", schema)) == {"HeroBlock", "Card"}
        assert find_where_used("Author", schema) == []

    def test_trace_dependencies(self, schema):
        trace = trace_dependencies("Button", schema)
        assert set(trace["direct"]) == {"HeroBlock.cta", "Card.button"}
        assert trace["indirect"] == [{"through": "HeroBlock", "in": "Page.hero"}]

    def test_trace_dependencies_of_unreferenced_type(self, schema):
        assert trace_dependencies("Author", schema) == {"direct": [], "indirect": []}
