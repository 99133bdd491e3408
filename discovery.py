# discovery.py
import logging
from typing import Any, Dict, Iterable, List, Optional

from classifier import build_field, is_system_union
from errors import FieldDiscoveryError, QueryExecutionError
from loader import GraphQLTransport, execute_query, unwrap_response
from models import Field, HygraphSchema, UnionType

logger = logging.getLogger(__name__)

# System and audit fields never treated as places a target can live in
SYSTEM_FIELD_NAMES = {
    "stage",
    "id",
    "createdAt",
    "updatedAt",
    "publishedAt",
    "documentInStages",
    "history",
    "publishedBy",
    "createdBy",
    "updatedBy",
    "scheduledIn",
    "locale",
    "localizations",
}

# Deep enough for NON_NULL -> LIST -> NON_NULL -> named type
TYPE_FIELDS_QUERY = """
query DiscoverFields {
  __type(name: "%s") {
    fields {
      name
      type {
        kind
        name
        ofType {
          kind
          name
          ofType {
            kind
            name
            ofType {
              kind
              name
            }
          }
        }
      }
    }
  }
}
"""

UNIONS_QUERY = """
query DiscoverUnions {
  __schema {
    types {
      kind
      name
      possibleTypes {
        name
      }
    }
  }
}
"""


def fetch_type_fields(transport: GraphQLTransport, type_name: str) -> List[Dict[str, Any]]:
    """
    Introspect the fields of a single named type.

    Raises:
        FieldDiscoveryError: if the request fails or the type does not exist.
    """
    try:
        data = unwrap_response(execute_query(transport, TYPE_FIELDS_QUERY % type_name))
    except QueryExecutionError as e:
        raise FieldDiscoveryError(f"Field discovery for {type_name} failed: {e}") from e

    type_info = data.get("__type")
    if not type_info or not isinstance(type_info.get("fields"), list):
        raise FieldDiscoveryError(f"Type {type_name} not found or has no fields")
    return type_info["fields"]


def discover_fields(
    transport: GraphQLTransport,
    type_name: str,
    unions: Optional[Iterable[UnionType]] = None,
) -> List[Field]:
    """
    Live field list of a type with wrappers stripped.

    A type that cannot be introspected yields an empty list so the caller
    simply skips it.
    """
    union_map = {u.name: u for u in (unions or [])}
    try:
        raw_fields = fetch_type_fields(transport, type_name)
    except FieldDiscoveryError as e:
        logger.warning("%s", e)
        return []
    return [build_field(f, union_map) for f in raw_fields if f.get("name")]


def candidate_fields(fields: Iterable[Field]) -> List[Field]:
    """Fields that may hold content, i.e. everything but system metadata."""
    return [f for f in fields if f.name not in SYSTEM_FIELD_NAMES]


def discover_unions(transport: GraphQLTransport) -> List[UnionType]:
    """
    All non-system unions of the live schema.

    Returns an empty list when the query fails.
    """
    try:
        data = unwrap_response(execute_query(transport, UNIONS_QUERY))
        types = data["__schema"]["types"]
    except (QueryExecutionError, KeyError, TypeError) as e:
        logger.warning("Error discovering unions: %s", e)
        return []

    unions = []
    for t in types:
        if t.get("kind") != "UNION" or is_system_union(t.get("name", "")):
            continue
        possible = tuple(p["name"] for p in (t.get("possibleTypes") or []) if p.get("name"))
        if possible:
            unions.append(UnionType(t["name"], possible))
    return unions


def find_unions_containing(
    transport: GraphQLTransport, schema: HygraphSchema, component_name: str
) -> List[Dict[str, Any]]:
    """
    Unions that include ``component_name``, with the model fields using them.

    Returns:
        [{"union": name, "models": [{"model": name, "field": name}, ...]}, ...]
        Unions no model field uses are left out.
    """
    unions = discover_unions(transport) or list(schema.unions)
    relevant = [u for u in unions if component_name in u.possible_types]
    if not relevant:
        return []

    model_fields = {m.name: discover_fields(transport, m.name, unions) for m in schema.models}
    results = []
    for union in relevant:
        users = [
            {"model": model_name, "field": f.name}
            for model_name, fields in model_fields.items()
            for f in fields
            if f.type_name == union.name
        ]
        if users:
            results.append({"union": union.name, "models": users})
    return results
