"""Tests for live field and union discovery."""

import pytest

from discovery import (
    candidate_fields,
    discover_fields,
    discover_unions,
    fetch_type_fields,
    find_unions_containing,
)
from errors import FieldDiscoveryError, QueryExecutionError
from models import Field

from conftest import CONTENT_SDL


class BrokenTransport:
    """Transport whose every request fails."""

    def __init__(self):
        self.calls = 0

    def execute(self, query, variables=None):
        self.calls += 1
        raise QueryExecutionError("HTTP 503: unavailable", status_code=503)


class TestFieldDiscovery:
    """Tests for per-type field introspection."""

    def test_discover_fields(self, transport, schema):
        fields = {f.name: f for f in discover_fields(transport, "Page", schema.unions)}
        assert set(fields) == {"id", "title", "slug", "theme", "tags", "blocks", "hero"}
        assert fields["blocks"].is_union
        assert fields["blocks"].is_list
        assert fields["tags"].type_name == "Tag"

    def test_unknown_type_raises(self, transport):
        with pytest.raises(FieldDiscoveryError):
            fetch_type_fields(transport, "Missing")

    def test_unknown_type_yields_no_fields(self, transport):
        assert discover_fields(transport, "Missing") == []

    def test_transport_failure_yields_no_fields(self):
        assert discover_fields(BrokenTransport(), "Page") == []

    def test_plain_transport_exception_yields_no_fields(self, make_transport):
        transport = make_transport(CONTENT_SDL, broken_on={'__type(name: "Post")'})
        assert discover_fields(transport, "Post") == []
        with pytest.raises(FieldDiscoveryError, match="socket closed"):
            fetch_type_fields(transport, "Post")

    def test_candidate_fields_drop_system_fields(self):
        fields = [Field("id", "ID"), Field("stage", "Stage"), Field("hero", "HeroBlock")]
        assert [f.name for f in candidate_fields(fields)] == ["hero"]


class TestUnionDiscovery:
    """Tests for live union discovery."""

    def test_discover_unions(self, transport):
        unions = {u.name: u for u in discover_unions(transport)}
        assert set(unions) == {"PageBlock"}
        assert set(unions["PageBlock"].possible_types) == {"HeroBlock", "Card", "Gallery"}

    def test_failure_yields_empty_list(self):
        assert discover_unions(BrokenTransport()) == []

    def test_plain_transport_exception_yields_empty_list(self, make_transport):
        transport = make_transport(CONTENT_SDL, broken_on={"DiscoverUnions"})
        assert discover_unions(transport) == []

    def test_find_unions_containing(self, transport, schema):
        assert find_unions_containing(transport, schema, "Card") == [
            {"union": "PageBlock", "models": [{"model": "Page", "field": "blocks"}]}
        ]

    def test_find_unions_containing_non_member(self, transport, schema):
        assert find_unions_containing(transport, schema, "Button") == []
