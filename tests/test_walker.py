"""Tests for the response walker."""

from walker import find_matches, index_marker


class TestFindMatches:
    """Tests for locating typed objects in decoded JSON."""

    def test_list_element_path(self):
        blocks = [
            {"__typename": "ImageBlock"},
            {"__typename": "ImageBlock"},
            {"__typename": "TextBlock", "text": "hi"},
        ]
        matches = find_matches(blocks, "TextBlock", ["blocks"])
        assert len(matches) == 1
        assert matches[0].path == ["blocks", "[2]"]
        assert matches[0].data["text"] == "hi"

    def test_nested_matches_in_document_order(self):
        value = {
            "__typename": "Section",
            "content": [
                {"__typename": "Card", "button": {"__typename": "Button", "label": "a"}},
                {"__typename": "Button", "label": "b"},
            ],
        }
        matches = find_matches(value, "Button", ["sections", "[0]"])
        assert [m.path for m in matches] == [
            ["sections", "[0]", "content", "[0]", "button"],
            ["sections", "[0]", "content", "[1]"],
        ]

    def test_match_inside_match(self):
        value = {"__typename": "Node", "child": {"__typename": "Node"}}
        assert [m.path for m in find_matches(value, "Node", ["tree"])] == [
            ["tree"],
            ["tree", "child"],
        ]

    def test_no_matches(self):
        assert find_matches([], "Card") == []
        assert find_matches(None, "Card") == []
        assert find_matches({"__typename": "Button"}, "Card", ["x"]) == []

    def test_caller_path_not_mutated(self):
        path = ["blocks"]
        find_matches([{"__typename": "Card"}], "Card", path)
        assert path == ["blocks"]

    def test_index_marker(self):
        assert index_marker(3) == "[3]"
