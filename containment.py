"""
Containment graph: which components can (transitively) embed a target.

Also builds the schema element index and the static dependency trace used
by the CLI listing.
"""

from typing import Dict, Iterable, List, Optional, Set

from classifier import is_system_component, is_system_enum, is_system_model
from models import Field, HygraphSchema, SchemaElement, UnionType


def _union_map(unions: Optional[Iterable[UnionType]], schema: HygraphSchema) -> Dict[str, UnionType]:
    if unions is None:
        unions = schema.unions
    return {u.name: u for u in unions}


def _references(field: Field, names: Set[str], unions: Dict[str, UnionType]) -> bool:
    """True if the field's type is in ``names``, directly or as a union member."""
    if field.type_name in names:
        return True
    union = unions.get(field.type_name)
    return union is not None and any(t in names for t in union.possible_types)


def find_containers(
    target: str,
    schema: HygraphSchema,
    unions: Optional[Iterable[UnionType]] = None,
    max_hops: int = 3,
) -> Set[str]:
    """
    Find the components that can reach ``target`` within ``max_hops`` rounds.

    Round zero collects components with a field typed as the target or as a
    union that includes it. Each further round adds components referencing an
    already known container the same way. Search stops early once a round adds
    nothing, since containment graphs may be mutually recursive.

    Returns:
        Set of component names. The target itself is only included when it
        contains itself.
    """
    union_map = _union_map(unions, schema)
    containers: Set[str] = {
        c.name
        for c in schema.components
        if any(_references(f, {target}, union_map) for f in c.fields)
    }

    for _ in range(max(0, max_hops)):
        added = {
            c.name
            for c in schema.components
            if c.name not in containers
            and any(_references(f, containers, union_map) for f in c.fields)
        }
        if not added:
            break
        containers |= added

    return containers


def search_universe(target: str, containers: Iterable[str]) -> Set[str]:
    """Type names a model field may carry to be worth querying."""
    return {target, *containers}


def find_where_used(name: str, schema: HygraphSchema) -> List[str]:
    """Models and components with a field typed directly as ``name``."""
    used_in: List[str] = []
    for owner in list(schema.models) + list(schema.components):
        if owner.name == name:
            continue
        if any(f.type_name == name for f in owner.fields) and owner.name not in used_in:
            used_in.append(owner.name)
    return used_in


def _enum_description(values: Iterable[str]) -> str:
    values = list(values)
    shown = ", ".join(values[:5])
    return f"Values: {shown}{'...' if len(values) > 5 else ''}"


def build_element_index(schema: HygraphSchema) -> List[SchemaElement]:
    """Index of searchable elements: components, models and enums."""
    elements: List[SchemaElement] = []

    for component in schema.components:
        if is_system_component(component.name):
            continue
        elements.append(
            SchemaElement(
                name=component.name,
                kind="component",
                field_names=tuple(component.field_names),
                used_in=tuple(find_where_used(component.name, schema)),
            )
        )

    for model in schema.models:
        if is_system_model(model.name):
            continue
        elements.append(
            SchemaElement(
                name=model.name,
                kind="model",
                field_names=tuple(model.field_names),
            )
        )

    for enum in schema.enums:
        if is_system_enum(enum.name):
            continue
        elements.append(
            SchemaElement(
                name=enum.name,
                kind="enum",
                used_in=tuple(find_where_used(enum.name, schema)),
                description=_enum_description(enum.values),
            )
        )

    return elements


def get_element(schema: HygraphSchema, name: str, kind: Optional[str] = None) -> Optional[SchemaElement]:
    for element in build_element_index(schema):
        if element.name == name and (kind is None or element.kind == kind):
            return element
    return None


def trace_dependencies(name: str, schema: HygraphSchema) -> Dict[str, list]:
    """
    Static "where is this referenced" trace.

    Returns:
        {"direct": ["Type.field", ...],
         "indirect": [{"through": component, "in": "Model.field"}, ...]}
    """
    direct: List[str] = []
    indirect: List[Dict[str, str]] = []
    components_using: List[str] = []

    for model in schema.models:
        for f in model.fields:
            if f.type_name == name:
                direct.append(f"{model.name}.{f.name}")

    for component in schema.components:
        for f in component.fields:
            if f.type_name == name:
                direct.append(f"{component.name}.{f.name}")
                if component.name not in components_using:
                    components_using.append(component.name)

    for component_name in components_using:
        for model in schema.models:
            for f in model.fields:
                if f.type_name == component_name:
                    indirect.append({"through": component_name, "in": f"{model.name}.{f.name}"})

    return {"direct": direct, "indirect": indirect}
