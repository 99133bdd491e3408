"""
Query synthesis for usage searches.

There is no single GraphQL query that returns "every usage of type T", so
one is built per model: each relevant field is expanded into a selection
that walks nested components and union members down to a fixed depth, with
``__typename`` on every object so the response walker can match instances.
"""

from typing import Dict, FrozenSet, Iterable, List, Optional

from graphql import parse, print_ast

from classifier import SCALAR_TYPES
from models import Field, HygraphSchema, Model, UnionType

TITLE_CANDIDATES = ["title", "name", "heading", "label", "slug", "displayName", "internalName"]

# Scalars selected per component for previews
PREVIEW_FIELD_COUNT = 5


def is_scalar_type(type_name: str) -> bool:
    return type_name in SCALAR_TYPES


def find_title_field(model: Model) -> str:
    """Best human readable String field of a model, or "" if it has none."""
    for candidate in TITLE_CANDIDATES:
        for f in model.fields:
            if f.name.lower() == candidate.lower() and f.type_name == "String":
                return f.name
    for f in model.fields:
        if f.type_name == "String":
            return f.name
    return ""


def preview_fields(component: Model) -> List[str]:
    return [f.name for f in component.fields if is_scalar_type(f.type_name)][:PREVIEW_FIELD_COUNT]


def _union_members(
    field: Field, unions: Dict[str, UnionType]
) -> Optional[Iterable[str]]:
    union = unions.get(field.type_name)
    if union is not None:
        return union.possible_types
    if field.is_union and field.union_possible_types:
        return field.union_possible_types
    return None


def build_type_selection(
    type_name: str,
    schema: HygraphSchema,
    unions: Dict[str, UnionType],
    visited: FrozenSet[str] = frozenset(),
    depth: int = 0,
    max_depth: int = 5,
) -> List[str]:
    """
    Selection lines for one component type, recursing into nested
    component and union fields.

    ``visited`` holds the types already expanded on the current path only; it
    is passed by value so sibling branches never truncate each other.
    """
    if depth >= max_depth or type_name in visited:
        return ["__typename"]

    component = schema.get_component(type_name)
    if component is None:
        return ["__typename"]

    visited = visited | {type_name}
    enum_names = set(schema.enum_names)

    lines = ["__typename"]
    lines.extend(preview_fields(component))
    # Enum values are leaves; the enum search reads them off component data
    lines.extend(
        f.name for f in component.fields if f.type_name in enum_names and f.name not in lines
    )

    for f in component.fields:
        if is_scalar_type(f.type_name) or f.type_name in enum_names:
            continue

        if schema.get_component(f.type_name) is not None:
            nested = build_type_selection(
                f.type_name, schema, unions, visited, depth + 1, max_depth
            )
            lines.append(f"{f.name} {{ {' '.join(nested)} }}")
            continue

        members = _union_members(f, unions)
        if members:
            fragments = _union_fragments(members, schema, unions, visited, depth + 1, max_depth)
            lines.append(f"{f.name} {{ __typename {fragments} }}")

    return lines


def _union_fragments(
    members: Iterable[str],
    schema: HygraphSchema,
    unions: Dict[str, UnionType],
    visited: FrozenSet[str],
    depth: int,
    max_depth: int,
) -> str:
    fragments = []
    for member in members:
        if schema.get_component(member) is not None:
            nested = build_type_selection(member, schema, unions, visited, depth, max_depth)
        else:
            nested = ["__typename"]
        fragments.append(f"... on {member} {{ {' '.join(nested)} }}")
    return " ".join(fragments)


def build_field_selection(
    field: Field,
    schema: HygraphSchema,
    unions: Dict[str, UnionType],
    max_depth: int = 5,
) -> str:
    """Selection for one top-level model field, seeded with a fresh path."""
    members = _union_members(field, unions)
    if members:
        fragments = _union_fragments(members, schema, unions, frozenset(), 0, max_depth)
        return f"{field.name} {{ __typename {fragments} }}"

    nested = build_type_selection(field.type_name, schema, unions, frozenset(), 0, max_depth)
    return f"{field.name} {{ {' '.join(nested)} }}"


def normalize_query(document: str) -> str:
    """Parse and re-print a document; raises GraphQLSyntaxError if invalid."""
    return print_ast(parse(document))


def _entries_query(operation: str, model: Model, selections: List[str], limit: int, stage: str) -> str:
    title_field = find_title_field(model)
    header = ["id"]
    if title_field:
        header.append(title_field)
    body = "\n".join(header + selections)
    return normalize_query(
        f"query {operation} {{\n"
        f"  entries: {model.plural_api_id}(first: {int(limit)}, stage: {stage}) {{\n"
        f"{body}\n"
        f"  }}\n"
        f"}}"
    )


def build_usage_query(
    model: Model,
    relevant_fields: Iterable[Field],
    target: str,
    schema: HygraphSchema,
    unions: Optional[Iterable[UnionType]] = None,
    max_depth: int = 5,
    limit: int = 100,
    stage: str = "DRAFT",
) -> str:
    """
    Build the usage query for ``target`` over one model.

    Args:
        model: model to query through its plural root field
        relevant_fields: model fields typed as the target, a container of it,
            or a union including either
        target: component being searched for
        schema: classified schema
        unions: live unions; defaults to the schema's
        max_depth: nesting bound for component expansion; a relevant field
            nests at most max_depth + 1 selection levels below the entry
        limit: max entries fetched
        stage: content stage to read

    Returns:
        Normalized query document text.
    """
    union_map = {u.name: u for u in (schema.unions if unions is None else unions)}
    selections = [
        build_field_selection(f, schema, union_map, max_depth) for f in relevant_fields
    ]
    return _entries_query(f"Find{model.name}{target}Usage", model, selections, limit, stage)


def build_enum_query(
    model: Model, enum_fields: Iterable[str], limit: int = 100, stage: str = "DRAFT"
) -> str:
    """Query selecting enum-typed fields of a model directly."""
    return _entries_query(f"Find{model.name}EnumUsage", model, list(enum_fields), limit, stage)
