"""
Schema classifier: raw introspection -> Models, Components, Enums, Unions.

Classification is name based. An OBJECT type is a Model when its
lower-camel name, or the pluralized form of it, is a root query field;
any other non-system OBJECT type is a Component. The pluralization rule
mirrors Hygraph's default API ids and is a known fragility point: a
project with custom plural API ids that do not follow it, and whose
singular query was renamed, will see Models classified as Components.
Use ``force_models`` / ``force_components`` to correct such schemas.
"""

from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from errors import SchemaFetchError
from models import Component, EnumType, Field, HygraphSchema, Model, UnionType

SCALAR_TYPES = {
    "String",
    "Int",
    "Float",
    "Boolean",
    "ID",
    "DateTime",
    "Date",
    "Json",
    "Long",
}

# Exact names of Hygraph system object types
SYSTEM_TYPES = {
    "Aggregate",
    "Asset",
    "BatchPayload",
    "Color",
    "DocumentVersion",
    "Location",
    "Mutation",
    "PageInfo",
    "Query",
    "RGBA",
    "RichText",
    "RichTextAST",
    "ScheduledOperation",
    "ScheduledRelease",
    "Subscription",
    "User",
    "Version",
}

SYSTEM_TYPE_SUFFIXES = (
    "Connection",
    "Edge",
    "Aggregate",
    "OrderByInput",
    "WhereInput",
    "WhereUniqueInput",
    "CreateInput",
    "UpdateInput",
    "UpsertInput",
    "ConnectInput",
    "CreateManyInlineInput",
    "UpdateManyInlineInput",
    "ManyWhereInput",
    "RichText",
)

SYSTEM_COMPONENTS = {
    "AssetUpload",
    "AssetUploadError",
    "AssetUploadRequestPostData",
    "AssetUploadWhereInput",
    "BatchPayload",
    "Color",
    "ColorInput",
    "ConnectPositionInput",
    "DocumentOutputInput",
    "DocumentTransformationInput",
    "DocumentVersion",
    "ImageResizeInput",
    "ImageTransformationInput",
    "Location",
    "LocationInput",
    "PageInfo",
    "RGBA",
    "RGBAInput",
    "RichText",
    "RichTextAST",
    "Version",
    "VersionWhereInput",
}

# Suffixes of auto-generated relation/system types
SYSTEM_COMPONENT_SUFFIXES = (
    "ScheduledRelease",
    "ScheduledOperation",
    "User",
    "Version",
    "Asset",
    "Connection",
    "Edge",
    "Aggregate",
)

SYSTEM_ENUMS = {
    "DocumentFileTypes",
    "ImageFit",
    "Locale",
    "Stage",
    "ScheduledOperationStatus",
    "ScheduledReleaseStatus",
    "SystemDateTimeFieldVariation",
    "EntityTypeName",
    "UserKind",
    "BatchPayloadType",
    "ColorInput",
    "ConnectPositionInput",
    "DocumentOutputInput",
    "DocumentTransformationInput",
    "ImageResizeInput",
    "ImageTransformationInput",
    "LocationInput",
    "PublishLocaleInput",
    "RGBAInput",
    "RGBAHue",
    "RGBATransparency",
    "UnpublishLocaleInput",
}

SYSTEM_MODELS = {"Asset", "User", "ScheduledOperation", "ScheduledRelease"}

# Enums and components pulled in from another project through remote fields
REMOTE_PROJECT_MARKER = "FromAnotherProject_"

# Audit metadata present on every Hygraph model
AUDIT_FIELDS = {
    "__typename",
    "stage",
    "documentInStages",
    "history",
    "publishedAt",
    "createdAt",
    "updatedAt",
    "publishedBy",
    "createdBy",
    "updatedBy",
    "scheduledIn",
}


def is_system_type(name: str) -> bool:
    if name.startswith("_"):
        return True
    if name in SYSTEM_TYPES:
        return True
    return name.endswith(SYSTEM_TYPE_SUFFIXES)


def is_system_component(name: str) -> bool:
    if name in SYSTEM_COMPONENTS:
        return True
    if name.startswith("Asset") and (
        "Upload" in name or "Transform" in name or "Output" in name
    ):
        return True
    if name.endswith("RichText") and name != "RichText":
        return True
    for marker in (
        "WhereInput",
        "OrderByInput",
        "CreateInput",
        "UpdateInput",
        "ConnectInput",
        "UpsertInput",
        "ManyInlineInput",
    ):
        if marker in name:
            return True
    for suffix in SYSTEM_COMPONENT_SUFFIXES:
        if (
            name == suffix
            or name.endswith(f"_{suffix}")
            or name.endswith(f"{suffix}Connection")
            or name.endswith(f"{suffix}Edge")
        ):
            return True
    return REMOTE_PROJECT_MARKER in name


def is_system_enum(name: str) -> bool:
    if name.startswith("_"):
        return True
    if name in SYSTEM_ENUMS:
        return True
    # Remote field copies of system enums, e.g. "Other_Stage"
    if any(name.endswith(f"_{system_enum}") for system_enum in SYSTEM_ENUMS):
        return True
    if name.endswith("Variation") or name.endswith("OrderByInput"):
        return True
    return REMOTE_PROJECT_MARKER in name


def is_system_model(name: str) -> bool:
    if name in SYSTEM_MODELS:
        return True
    # Embedded types generated per rich text field, e.g. "PageContentRichText"
    if name.endswith("RichText") and len(name) > len("RichText"):
        return True
    return name.endswith("EmbeddedAsset") and len(name) > len("EmbeddedAsset")


def is_system_union(name: str) -> bool:
    return (
        name.startswith("__")
        or "ScheduledOperation" in name
        or "RichTextEmbedded" in name
    )


def lower_camel(name: str) -> str:
    return name[:1].lower() + name[1:]


def pluralize(name: str) -> str:
    """
    Hygraph-style plural API id for a type name.

    "Page" -> "pages", "Category" -> "categories", "Status" -> "statuses".
    """
    base = lower_camel(name)
    if base.endswith("s"):
        return base + "es"
    if base.endswith("y"):
        return base[:-1] + "ies"
    return base + "s"


def unwrap_type_ref(type_ref: Optional[Dict[str, Any]]) -> Tuple[str, str, bool, bool]:
    """
    Strip NON_NULL and LIST wrappers from an introspection type reference.

    Returns:
        (type_name, kind, is_list, is_required) of the named base type.
        ``is_required`` reflects the outermost wrapper only.
    """
    is_list = False
    is_required = bool(type_ref) and type_ref.get("kind") == "NON_NULL"
    current = type_ref
    while current:
        kind = current.get("kind")
        if kind == "NON_NULL":
            current = current.get("ofType")
        elif kind == "LIST":
            is_list = True
            current = current.get("ofType")
        else:
            return current.get("name") or "", kind or "", is_list, is_required
    return "", "", is_list, is_required


def build_field(raw_field: Dict[str, Any], unions: Dict[str, UnionType]) -> Field:
    type_name, kind, is_list, is_required = unwrap_type_ref(raw_field.get("type"))
    is_union = kind == "UNION" or type_name in unions
    possible = unions[type_name].possible_types if type_name in unions else ()
    return Field(
        name=raw_field["name"],
        type_name=type_name,
        is_list=is_list,
        is_required=is_required,
        is_union=is_union,
        union_possible_types=tuple(possible) if is_union and possible else None,
    )


def _schema_types(raw: Any) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    if isinstance(raw, dict) and "data" in raw and "__schema" not in raw:
        raw = raw["data"]
    schema = raw.get("__schema") if isinstance(raw, dict) else None
    types = schema.get("types") if isinstance(schema, dict) else None
    if not isinstance(types, list):
        raise SchemaFetchError("Malformed introspection: missing __schema.types")
    for t in types:
        if not isinstance(t, dict) or not isinstance(t.get("name"), str):
            raise SchemaFetchError("Malformed introspection: type entry without a name")
    return schema, types


def _root_type_names(schema: Dict[str, Any]) -> Set[str]:
    names = {"Query", "Mutation", "Subscription"}
    for key in ("queryType", "mutationType", "subscriptionType"):
        root = schema.get(key)
        if isinstance(root, dict) and root.get("name"):
            names.add(root["name"])
    return names


def _query_fields(schema: Dict[str, Any], types: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    query_name = (schema.get("queryType") or {}).get("name") or "Query"
    for t in types:
        if t["name"] == query_name:
            return t.get("fields") or []
    return []


def _plural_api_ids(query_fields: List[Dict[str, Any]]) -> Dict[str, str]:
    """Map type names to the root field returning a non-null list of them."""
    plural_ids: Dict[str, str] = {}
    for f in query_fields:
        name = f.get("name", "")
        if (
            name.endswith("Connection")
            or name.endswith("Version")
            or name in ("node", "entities")
            or name.startswith("hygraph")
        ):
            continue
        type_ref = f.get("type") or {}
        if type_ref.get("kind") == "NON_NULL" and (type_ref.get("ofType") or {}).get("kind") == "LIST":
            type_name = unwrap_type_ref(type_ref)[0]
            if type_name and type_name not in plural_ids:
                plural_ids[type_name] = name
    return plural_ids


def classify(
    raw: Dict[str, Any],
    force_models: Iterable[str] = (),
    force_components: Iterable[str] = (),
) -> HygraphSchema:
    """
    Classify raw introspection output.

    Args:
        raw: ``{"__schema": {...}}`` or a full response body with ``data``
        force_models: type names always treated as Models
        force_components: type names always treated as Components

    Raises:
        SchemaFetchError: if ``__schema.types`` is missing or malformed.
    """
    schema, types = _schema_types(raw)
    force_models = set(force_models)
    force_components = set(force_components)

    roots = _root_type_names(schema)
    query_fields = _query_fields(schema, types)
    query_field_names = {f.get("name", "").lower() for f in query_fields}
    plural_ids = _plural_api_ids(query_fields)

    unions: Dict[str, UnionType] = {}
    for t in types:
        if t.get("kind") != "UNION" or is_system_union(t["name"]):
            continue
        possible = tuple(p["name"] for p in (t.get("possibleTypes") or []) if p.get("name"))
        if possible:
            unions[t["name"]] = UnionType(t["name"], possible)

    models: List[Model] = []
    components: List[Component] = []
    enums: List[EnumType] = []

    for t in types:
        name = t["name"]
        kind = t.get("kind")

        if kind == "ENUM":
            if is_system_enum(name):
                continue
            values = tuple(v["name"] for v in (t.get("enumValues") or []))
            enums.append(EnumType(name, values))
            continue

        if kind != "OBJECT" or name in roots:
            continue
        if is_system_type(name) and name not in force_models and name not in force_components:
            continue

        fields = tuple(
            build_field(f, unions)
            for f in (t.get("fields") or [])
            if f.get("name") not in AUDIT_FIELDS
        )
        if not fields:
            continue

        plural_api_id = plural_ids.get(name) or pluralize(name)
        if name in force_models:
            is_model = True
        elif name in force_components:
            is_model = False
        else:
            is_model = (
                lower_camel(name).lower() in query_field_names
                or plural_api_id.lower() in query_field_names
            )

        if is_model:
            models.append(Model(name, name, plural_api_id, fields))
        else:
            components.append(Component(name, name, plural_api_id, fields))

    return HygraphSchema(
        models=tuple(models),
        components=tuple(components),
        enums=tuple(enums),
        unions=tuple(unions.values()),
    )
