"""Data records shared by the classifier, locator and scanner.

Everything here is plain data. Schema records are rebuilt from a fresh
introspection on every run and are never mutated after construction.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Tuple


@dataclass(frozen=True)
class Field:
    name: str
    type_name: str
    is_list: bool = False
    is_required: bool = False
    is_union: bool = False
    # Present only for union fields with at least one possible type
    union_possible_types: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class Model:
    name: str
    api_id: str
    plural_api_id: str
    fields: Tuple[Field, ...] = ()

    def get_field(self, name: str) -> Optional[Field]:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]


@dataclass(frozen=True)
class Component(Model):
    """Object type that is only ever embedded, never queried from the root."""


@dataclass(frozen=True)
class EnumType:
    name: str
    values: Tuple[str, ...] = ()


@dataclass(frozen=True)
class UnionType:
    name: str
    possible_types: Tuple[str, ...] = ()


@dataclass(frozen=True)
class HygraphSchema:
    models: Tuple[Model, ...] = ()
    components: Tuple[Component, ...] = ()
    enums: Tuple[EnumType, ...] = ()
    unions: Tuple[UnionType, ...] = ()

    def get_model(self, name: str) -> Optional[Model]:
        return next((m for m in self.models if m.name == name), None)

    def get_component(self, name: str) -> Optional[Component]:
        return next((c for c in self.components if c.name == name), None)

    def get_enum(self, name: str) -> Optional[EnumType]:
        return next((e for e in self.enums if e.name == name), None)

    def get_union(self, name: str) -> Optional[UnionType]:
        return next((u for u in self.unions if u.name == name), None)

    @property
    def component_names(self) -> List[str]:
        return [c.name for c in self.components]

    @property
    def enum_names(self) -> List[str]:
        return [e.name for e in self.enums]


@dataclass(frozen=True)
class SchemaElement:
    name: str
    kind: str  # "component" | "model" | "enum"
    field_names: Tuple[str, ...] = ()
    used_in: Tuple[str, ...] = ()
    description: str = ""


class Match(NamedTuple):
    """One object found by the response walker."""

    path: List[str]
    data: Dict[str, Any]


@dataclass
class UsageLocation:
    entry_id: str
    entry_title: str
    model_name: str
    model_plural_api_id: str
    field_path: List[str]
    stage: str
    payload: Dict[str, Any]
    preview_fields: Dict[str, Any] = field(default_factory=dict)


@dataclass
class UsageResult:
    """All usages found for one element.

    Best effort: models whose query failed are listed in ``failed_models``
    and contribute nothing, so an empty ``usages`` list is not proof that
    the element is unused.
    """

    element: SchemaElement
    usages: List[UsageLocation] = field(default_factory=list)
    models_with_usage: List[str] = field(default_factory=list)
    search_path: List[str] = field(default_factory=list)
    failed_models: List[str] = field(default_factory=list)

    @property
    def total_usages(self) -> int:
        return len(self.usages)

    @property
    def is_partial(self) -> bool:
        return bool(self.failed_models)


@dataclass
class EntryRef:
    id: str
    model: str
    title: str = ""


@dataclass
class UsageSummary:
    name: str
    kind: str
    count: int = 0
    models: List[str] = field(default_factory=list)
    entries: List[EntryRef] = field(default_factory=list)
    # True when at least one model could not be queried for this element
    partial: bool = False


@dataclass
class ScanProgress:
    current: int
    total: int
    current_name: str


@dataclass
class ScanResult:
    summaries: Dict[str, UsageSummary] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    total: int = 0
    processed: int = 0
    interrupted: bool = False

    @property
    def complete(self) -> bool:
        return not self.interrupted and self.processed == self.total
