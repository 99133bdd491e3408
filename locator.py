"""
Usage locator: finds where a component or enum is used in stored content.

Component search, per invocation:
    discover unions -> compute containment -> for each model:
    discover fields -> build query -> execute -> walk response

Enum search matches field values instead of type names, first on model
fields typed as the enum, then inside every component that has such a
field (reusing the component search).

Results are best effort. A model whose fields cannot be discovered is
skipped, a model whose query fails is recorded in the trace and in
``UsageResult.failed_models``; neither aborts the search.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from graphql import GraphQLError, GraphQLSchema, parse, validate

from config import DEFAULT_LIMIT, DEFAULT_MAX_DEPTH, DEFAULT_MAX_HOPS, DEFAULT_STAGE
from containment import find_containers, find_where_used, search_universe
from discovery import candidate_fields, discover_fields, discover_unions
from errors import QueryExecutionError
from loader import GraphQLTransport, execute_query, response_errors, unwrap_response
from models import (
    Field,
    HygraphSchema,
    Model,
    SchemaElement,
    UnionType,
    UsageLocation,
    UsageResult,
)
from query_builder import build_enum_query, build_usage_query, find_title_field
from walker import find_matches, index_marker

logger = logging.getLogger(__name__)

PREVIEW_VALUE_COUNT = 4


def extract_preview_fields(entry: Dict[str, Any]) -> Dict[str, Any]:
    """First few scalar values of an entry, for display."""
    preview: Dict[str, Any] = {}
    for key, value in entry.items():
        if len(preview) >= PREVIEW_VALUE_COUNT:
            break
        if key == "__typename":
            continue
        if isinstance(value, (str, int, float, bool)):
            preview[key] = value
    return preview


def select_relevant_fields(
    fields: Iterable[Field], universe: Iterable[str], unions: Dict[str, UnionType]
) -> List[Field]:
    """Model fields typed as a universe member or a union including one."""
    universe = set(universe)
    relevant = []
    for f in candidate_fields(fields):
        if f.type_name in universe:
            relevant.append(f)
            continue
        union = unions.get(f.type_name)
        members = union.possible_types if union else (f.union_possible_types or ())
        if f.is_union and any(t in universe for t in members):
            relevant.append(f)
    return relevant


class UsageLocator:
    """
    Runs usage searches against one schema snapshot and transport.

    Args:
        transport: object with ``execute(query) -> dict``
        schema: classified schema
        limit: max entries fetched per model
        max_hops: containment search rounds
        max_depth: nesting bound of synthesized selections
        stage: content stage to read
        client_schema: optional graphql-core schema; when given, synthesized
            queries are validated against it before being sent
    """

    def __init__(
        self,
        transport: GraphQLTransport,
        schema: HygraphSchema,
        limit: int = DEFAULT_LIMIT,
        max_hops: int = DEFAULT_MAX_HOPS,
        max_depth: int = DEFAULT_MAX_DEPTH,
        stage: str = DEFAULT_STAGE,
        client_schema: Optional[GraphQLSchema] = None,
    ):
        self.transport = transport
        self.schema = schema
        self.limit = limit
        self.max_hops = max_hops
        self.max_depth = max_depth
        self.stage = stage
        self.client_schema = client_schema

    def find_usage(self, name: str, kind: str) -> UsageResult:
        """Dispatch on element kind ("component" or "enum")."""
        if kind == "enum":
            return self.find_enum_usage(name)
        if kind == "component":
            return self.find_component_usage(name)
        raise ValueError(f"Unsupported element kind: {kind}")

    # ------------------------------------------------------------------
    # execution helpers

    def _execute(self, query: str) -> Dict[str, Any]:
        if self.client_schema is not None:
            errors = validate(self.client_schema, parse(query))
            if errors:
                raise QueryExecutionError(
                    "; ".join(e.message for e in errors),
                    errors=[e.formatted for e in errors],
                )
        logger.debug("Executing query:\n%s", query)
        return execute_query(self.transport, query)

    def _fetch_entries(self, query: str, trace: List[str]) -> List[Dict[str, Any]]:
        payload = self._execute(query)
        data = unwrap_response(payload)
        errors = response_errors(payload)
        if errors:
            trace.append(f"  Partial response: {len(errors)} GraphQL error(s)")
        return [e for e in (data.get("entries") or []) if isinstance(e, dict)]

    def _location(
        self,
        model: Model,
        entry: Dict[str, Any],
        title_field: str,
        field_path: List[str],
        payload: Dict[str, Any],
    ) -> UsageLocation:
        entry_id = str(entry.get("id", ""))
        title = entry.get(title_field) if title_field else None
        return UsageLocation(
            entry_id=entry_id,
            entry_title=str(title) if title else entry_id,
            model_name=model.name,
            model_plural_api_id=model.plural_api_id,
            field_path=field_path,
            stage=self.stage,
            payload=payload,
            preview_fields=extract_preview_fields(entry),
        )

    # ------------------------------------------------------------------
    # component pathway

    def _discover_unions(self, trace: List[str]) -> List[UnionType]:
        trace.append("Discovering schema structure...")
        unions = discover_unions(self.transport)
        if not unions and self.schema.unions:
            trace.append("  Union discovery returned nothing, using classified unions")
            unions = list(self.schema.unions)
        return unions

    def find_component_usage(self, name: str) -> UsageResult:
        result = UsageResult(
            element=SchemaElement(
                name=name,
                kind="component",
                used_in=tuple(find_where_used(name, self.schema)),
            )
        )
        trace = result.search_path

        unions = self._discover_unions(trace)
        union_map = {u.name: u for u in unions}

        containers = find_containers(name, self.schema, unions, self.max_hops)
        trace.append(
            f"Found {len(containers)} components that may contain {name} (directly or nested)"
        )
        universe = search_universe(name, containers)

        for model in self.schema.models:
            trace.append(f"Analyzing {model.name}...")
            fields = discover_fields(self.transport, model.name, unions)
            if not fields:
                trace.append("  No fields discovered")
                continue

            relevant = select_relevant_fields(fields, universe, union_map)
            if not relevant:
                trace.append("  No component fields found")
                continue
            trace.append(f"  Found {len(relevant)} component field(s) to search")

            try:
                query = build_usage_query(
                    model,
                    relevant,
                    name,
                    self.schema,
                    unions,
                    max_depth=self.max_depth,
                    limit=self.limit,
                    stage=self.stage,
                )
                entries = self._fetch_entries(query, trace)
            except (QueryExecutionError, GraphQLError) as e:
                logger.warning("Error querying %s: %s", model.name, e)
                trace.append(f"  Error: {e}")
                result.failed_models.append(model.name)
                continue

            title_field = find_title_field(model)
            found = 0
            for entry in entries:
                for f in relevant:
                    value = entry.get(f.name)
                    if not value:
                        continue
                    for match in find_matches(value, name, [f.name]):
                        result.usages.append(
                            self._location(model, entry, title_field, match.path, match.data)
                        )
                        found += 1

            if found and model.name not in result.models_with_usage:
                result.models_with_usage.append(model.name)
            trace.append(f"  Found {found} entries using {name}")

        return result

    # ------------------------------------------------------------------
    # enum pathway

    def find_enum_usage(self, name: str) -> UsageResult:
        enum = self.schema.get_enum(name)
        values = list(enum.values) if enum else []
        shown = ", ".join(values[:5])
        result = UsageResult(
            element=SchemaElement(
                name=name,
                kind="enum",
                used_in=tuple(find_where_used(name, self.schema)),
                description=f"Values: {shown}{'...' if len(values) > 5 else ''}",
            )
        )
        trace = result.search_path
        trace.append(f'Searching for enum "{name}" usage...')
        trace.append(f"Enum values: {', '.join(values)}")

        for model in self.schema.models:
            trace.append(f"Analyzing {model.name}...")
            fields = discover_fields(self.transport, model.name)
            if not fields:
                trace.append("  No fields discovered")
                continue
            enum_fields = [f.name for f in candidate_fields(fields) if f.type_name == name]
            if not enum_fields:
                trace.append(f"  No fields using enum {name}")
                continue
            trace.append(
                f"  Found {len(enum_fields)} field(s) using enum: {', '.join(enum_fields)}"
            )

            try:
                query = build_enum_query(model, enum_fields, self.limit, self.stage)
                entries = self._fetch_entries(query, trace)
            except (QueryExecutionError, GraphQLError) as e:
                logger.warning("Error querying %s for enum: %s", model.name, e)
                trace.append(f"  Error: {e}")
                result.failed_models.append(model.name)
                continue

            title_field = find_title_field(model)
            found = 0
            for entry in entries:
                for field_name in enum_fields:
                    for path, value in _enum_values(entry.get(field_name), [field_name]):
                        if values and value not in values:
                            continue
                        result.usages.append(
                            self._location(
                                model,
                                entry,
                                title_field,
                                path,
                                {"value": value, "field": field_name, "enumType": name},
                            )
                        )
                        found += 1

            if found and model.name not in result.models_with_usage:
                result.models_with_usage.append(model.name)
            trace.append(f"  Found {found} entries using enum {name}")

        self._find_enum_in_components(name, values, result)
        return result

    def _find_enum_in_components(self, name: str, values: List[str], result: UsageResult) -> None:
        trace = result.search_path
        components = [
            c for c in self.schema.components if any(f.type_name == name for f in c.fields)
        ]
        if not components:
            return
        trace.append(f"Enum also used in components: {', '.join(c.name for c in components)}")

        for component in components:
            enum_fields = [f.name for f in component.fields if f.type_name == name]
            sub = self.find_component_usage(component.name)
            for model_name in sub.failed_models:
                if model_name not in result.failed_models:
                    result.failed_models.append(model_name)

            found = 0
            for usage in sub.usages:
                for field_name in enum_fields:
                    base_path = usage.field_path + [field_name]
                    for path, value in _enum_values(usage.payload.get(field_name), base_path):
                        if values and value not in values:
                            continue
                        result.usages.append(
                            UsageLocation(
                                entry_id=usage.entry_id,
                                entry_title=usage.entry_title,
                                model_name=usage.model_name,
                                model_plural_api_id=usage.model_plural_api_id,
                                field_path=path,
                                stage=usage.stage,
                                payload={
                                    "value": value,
                                    "inComponent": component.name,
                                    "field": field_name,
                                },
                                preview_fields=usage.preview_fields,
                            )
                        )
                        if usage.model_name not in result.models_with_usage:
                            result.models_with_usage.append(usage.model_name)
                        found += 1
            trace.append(
                f"  {component.name}: {len(sub.usages)} instance(s), {found} with a {name} value"
            )


def _enum_values(value: Any, path: List[str]) -> List[tuple]:
    """(path, value) pairs for a single enum value or a list of them."""
    if value is None:
        return []
    if isinstance(value, list):
        return [
            (path + [index_marker(i)], item)
            for i, item in enumerate(value)
            if item is not None
        ]
    return [(path, value)]


def find_usage(
    transport: GraphQLTransport,
    schema: HygraphSchema,
    name: str,
    kind: str,
    **options: Any,
) -> UsageResult:
    """One-shot usage search; ``options`` are UsageLocator keyword arguments."""
    return UsageLocator(transport, schema, **options).find_usage(name, kind)
