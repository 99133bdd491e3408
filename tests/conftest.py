"""Pytest configuration and fixtures for usage finder tests."""

import copy
import re
from typing import Any, Dict, List, Optional, Set

import pytest
from graphql import build_schema, introspection_from_schema, parse

from classifier import classify
from errors import QueryExecutionError

TYPE_NAME_PATTERN = re.compile(r'__type\(name: "(\w+)"\)')

CONTENT_SDL = """
enum Stage { DRAFT PUBLISHED }
enum Theme { LIGHT DARK }
enum Tag { NEWS SPORTS TECH }

union PageBlock = HeroBlock | Card | Gallery

type Button {
  label: String
  url: String
}

type HeroBlock {
  heading: String
  theme: Theme
  cta: Button
}

type Card {
  title: String
  button: Button
}

type Gallery {
  title: String
  cards: [Card!]!
}

type Section {
  title: String
  content: [PageBlock!]!
}

type Page {
  id: ID!
  title: String
  slug: String
  theme: Theme
  tags: [Tag!]
  blocks: [PageBlock!]!
  hero: HeroBlock
}

type Post {
  id: ID!
  name: String
  sections: [Section!]!
}

type Author {
  id: ID!
  name: String
}

type Query {
  pages(first: Int, stage: Stage): [Page!]!
  page(id: ID): Page
  posts(first: Int, stage: Stage): [Post!]!
  post(id: ID): Post
  authors(first: Int, stage: Stage): [Author!]!
  author(id: ID): Author
}
"""

CONTENT = {
    "pages": [
        {
            "id": "p1",
            "title": "Home",
            "slug": "home",
            "theme": "LIGHT",
            "tags": ["NEWS", "TECH"],
            "blocks": [
                {
                    "__typename": "HeroBlock",
                    "heading": "Welcome",
                    "theme": "DARK",
                    "cta": {"__typename": "Button", "label": "Go", "url": "/go"},
                },
                {
                    "__typename": "Card",
                    "title": "Feature",
                    "button": {"__typename": "Button", "label": "More", "url": "/more"},
                },
            ],
            "hero": None,
        },
        {
            "id": "p2",
            "title": "About",
            "slug": "about",
            "theme": None,
            "tags": [],
            "blocks": [],
            "hero": {
                "__typename": "HeroBlock",
                "heading": "About us",
                "theme": "LIGHT",
                "cta": None,
            },
        },
    ],
    "posts": [
        {
            "id": "x1",
            "name": "Launch notes",
            "sections": [
                {
                    "__typename": "Section",
                    "title": "Gallery",
                    "content": [
                        {
                            "__typename": "Gallery",
                            "title": "Shots",
                            "cards": [
                                {
                                    "__typename": "Card",
                                    "title": "One",
                                    "button": {
                                        "__typename": "Button",
                                        "label": "Open",
                                        "url": "/one",
                                    },
                                }
                            ],
                        }
                    ],
                }
            ],
        }
    ],
    "authors": [{"id": "a1", "name": "Ada"}],
}


class FakeTransport:
    """
    In-memory stand-in for the Hygraph content API.

    Introspection is answered from an SDL schema through graphql-core;
    content queries return the canned entries of their root field. Every
    document is recorded in ``queries``.
    """

    def __init__(
        self,
        sdl: str,
        content: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        fail_on: Optional[Set[str]] = None,
        errors_on: Optional[Set[str]] = None,
        broken_on: Optional[Set[str]] = None,
    ):
        self.introspection = introspection_from_schema(build_schema(sdl))
        self.content = content or {}
        self.fail_on = fail_on or set()
        self.errors_on = errors_on or set()
        # Query fragments that make the transport itself blow up
        self.broken_on = broken_on or set()
        self.queries: List[str] = []

    def _type(self, name: str) -> Optional[Dict[str, Any]]:
        for t in self.introspection["__schema"]["types"]:
            if t["name"] == name:
                return t
        return None

    @property
    def content_queries(self) -> List[str]:
        return [q for q in self.queries if "entries:" in q]

    def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        self.queries.append(query)
        if any(fragment in query for fragment in self.broken_on):
            raise ConnectionError("socket closed")

        if "IntrospectionQuery" in query or "ValidateConnection" in query:
            return {"data": copy.deepcopy(self.introspection)}
        if "DiscoverUnions" in query:
            return {"data": {"__schema": {"types": copy.deepcopy(self.introspection["__schema"]["types"])}}}

        match = TYPE_NAME_PATTERN.search(query)
        if match:
            return {"data": {"__type": copy.deepcopy(self._type(match.group(1)))}}

        document = parse(query)
        root = document.definitions[0].selection_set.selections[0].name.value
        if root in self.fail_on:
            raise QueryExecutionError(f"HTTP 500: {root} unavailable", status_code=500)

        body: Dict[str, Any] = {"data": {"entries": copy.deepcopy(self.content.get(root, []))}}
        if root in self.errors_on:
            body["errors"] = [{"message": f"Some {root} could not be resolved"}]
        return body


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport(CONTENT_SDL, CONTENT)


@pytest.fixture
def raw_schema(transport: FakeTransport) -> Dict[str, Any]:
    return copy.deepcopy(transport.introspection)


@pytest.fixture
def schema(raw_schema):
    return classify(raw_schema)


@pytest.fixture
def make_transport():
    """Factory for transports over a custom SDL schema and content."""
    return FakeTransport
