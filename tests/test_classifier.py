"""Tests for schema classification."""

import pytest

from classifier import (
    classify,
    is_system_component,
    is_system_enum,
    is_system_type,
    lower_camel,
    pluralize,
    unwrap_type_ref,
)
from errors import SchemaFetchError


class TestNaming:
    """Tests for the Hygraph API id helpers."""

    def test_lower_camel(self):
        assert lower_camel("HeroBlock") == "heroBlock"
        assert lower_camel("") == ""

    @pytest.mark.parametrize(
        "name, plural",
        [
            ("Page", "pages"),
            ("Category", "categories"),
            ("Status", "statuses"),
            ("BlogPost", "blogPosts"),
        ],
    )
    def test_pluralize(self, name, plural):
        assert pluralize(name) == plural


class TestSystemFilters:
    """Tests for the system type predicates."""

    def test_system_types(self):
        assert is_system_type("__Schema")
        assert is_system_type("PageConnection")
        assert is_system_type("PageEdge")
        assert is_system_type("Asset")
        assert not is_system_type("HeroBlock")

    def test_system_components(self):
        assert is_system_component("RGBA")
        assert is_system_component("AssetUploadError")
        assert is_system_component("Other_Version")
        assert is_system_component("Block_FromAnotherProject_Card")
        assert not is_system_component("Card")

    def test_system_enums(self):
        assert is_system_enum("Stage")
        assert is_system_enum("__TypeKind")
        assert is_system_enum("Remote_Locale")
        assert not is_system_enum("Theme")


class TestUnwrapTypeRef:
    """Tests for stripping NON_NULL / LIST wrappers."""

    def test_required_list_of_required(self):
        ref = {
            "kind": "NON_NULL",
            "ofType": {
                "kind": "LIST",
                "ofType": {"kind": "NON_NULL", "ofType": {"kind": "UNION", "name": "PageBlock"}},
            },
        }
        assert unwrap_type_ref(ref) == ("PageBlock", "UNION", True, True)

    def test_nullable_named_type(self):
        assert unwrap_type_ref({"kind": "OBJECT", "name": "HeroBlock"}) == (
            "HeroBlock",
            "OBJECT",
            False,
            False,
        )

    def test_missing_ref(self):
        assert unwrap_type_ref(None) == ("", "", False, False)


class TestClassify:
    """Tests for Model / Component / Enum / Union classification."""

    def test_models_and_components(self, schema):
        assert {m.name for m in schema.models} == {"Page", "Post", "Author"}
        assert set(schema.component_names) == {"Button", "HeroBlock", "Card", "Gallery", "Section"}

    def test_every_object_type_lands_in_exactly_one_bucket(self, schema):
        models = {m.name for m in schema.models}
        components = set(schema.component_names)
        assert not models & components

    def test_plural_api_id_from_root_field(self, schema):
        assert schema.get_model("Page").plural_api_id == "pages"
        assert schema.get_model("Author").api_id == "Author"

    def test_enums_exclude_system_enums(self, schema):
        assert set(schema.enum_names) == {"Theme", "Tag"}
        assert schema.get_enum("Theme").values == ("LIGHT", "DARK")

    def test_unions(self, schema):
        union = schema.get_union("PageBlock")
        assert union is not None
        assert set(union.possible_types) == {"HeroBlock", "Card", "Gallery"}

    def test_field_shapes(self, schema):
        blocks = schema.get_model("Page").get_field("blocks")
        assert blocks.type_name == "PageBlock"
        assert blocks.is_list
        assert blocks.is_required
        assert blocks.is_union
        assert set(blocks.union_possible_types) == {"HeroBlock", "Card", "Gallery"}

        hero = schema.get_model("Page").get_field("hero")
        assert hero.type_name == "HeroBlock"
        assert not hero.is_list
        assert not hero.is_union
        assert hero.union_possible_types is None

    def test_accepts_full_response_body(self, raw_schema):
        classified = classify({"data": raw_schema})
        assert {m.name for m in classified.models} == {"Page", "Post", "Author"}

    def test_force_overrides(self, raw_schema):
        classified = classify(raw_schema, force_models=["Card"], force_components=["Author"])
        assert classified.get_model("Card") is not None
        assert classified.get_component("Card") is None
        assert classified.get_component("Author") is not None
        assert classified.get_model("Author") is None

    def test_irregular_plural_found_through_root_list_field(self, make_transport):
        transport = make_transport(
            """
            type Person { name: String }
            type Query { people: [Person!]! }
            """
        )
        classified = classify(transport.introspection)
        assert classified.get_model("Person").plural_api_id == "people"

    def test_type_without_root_field_is_a_component(self, make_transport):
        transport = make_transport(
            """
            type Person { name: String }
            type Query { allPeople: [Person] }
            """
        )
        classified = classify(transport.introspection)
        assert classified.get_component("Person") is not None

        forced = classify(transport.introspection, force_models=["Person"])
        assert forced.get_model("Person").plural_api_id == "persons"

    def test_malformed_introspection_raises(self):
        with pytest.raises(SchemaFetchError):
            classify({"data": {}})
        with pytest.raises(SchemaFetchError):
            classify({"__schema": {"types": [{"kind": "OBJECT"}]}})
