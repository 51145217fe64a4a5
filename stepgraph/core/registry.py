"""Registry Builder and Usage Indexer.

Both passes run over the flat step list rather than the tree, because a step
may reference a variable or table declared by a sibling that the tree walk
has not reached yet.
"""

import json
from collections.abc import MutableSet
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

from stepgraph.core.records import StepRecord
from stepgraph.core.text import first_text, get_text_safe
from stepgraph.logging import get_logger

logger = get_logger(__name__)

# Placeholder names used when a step has no real table
SENTINEL_NAMES = frozenset({"dataset", "target"})

TABLE_FIELDS = (
    "TableName",
    "InputTableName",
    "OutputTableName",
    "JoinTable1",
    "JoinTable2",
    "AppendToTableName",
    "ExportMemoryTableName",
    "MemoryTableName",
    "FilterTableName",
)
OUTPUT_NAME_FIELDS = ("OutputVariable", "ResultVariable")
VARIABLE_STEP_TYPES = frozenset({"SetVariable", "CalculateVariable"})

# Implicit buffer a text file load writes to when it names no output
TEXT_FILE_BUFFER = "DATA"
LOOP_CONDITION_VALUE = "Loop Condition"
MISSING_VALUE = "N/A"


class OrderedNameSet(MutableSet):
    """A set of names that iterates in first-insertion order."""

    def __init__(self, names: Iterable[str] = ()):
        self._names: Dict[str, None] = {}
        for name in names:
            self.add(name)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"OrderedNameSet({list(self._names)!r})"

    def add(self, name: str) -> None:
        self._names[name] = None

    def discard(self, name: str) -> None:
        self._names.pop(name, None)


@dataclass
class VariableEntry:
    """A variable discovered in the process, keyed by name."""

    name: str
    value: str
    declared_by: str
    kind: str = "Var"
    used_in: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "value": self.value,
            "declared_by": self.declared_by,
            "used_in": list(self.used_in),
        }


@dataclass
class ColumnInfo:
    """Where a column was last defined during the tree walk."""

    data_type: str
    source: str
    origin: str


class ColumnCatalog:
    """Column name -> ColumnInfo, filled in depth-first execution order."""

    def __init__(self):
        self._columns: Dict[str, ColumnInfo] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._columns

    def register(self, columns: List[Any], origin: str, kind: str) -> None:
        """Record column definitions made by a step.

        Args:
            columns: Column items (query, calculated or table definition)
            origin: Display name of the defining step
            kind: ``query``, ``calc`` or ``table``
        """
        for column in columns:
            if not isinstance(column, dict):
                continue
            name = get_text_safe(column.get("ColumnName"))
            if not name:
                continue
            data_type = (
                first_text(
                    column.get("ColumnType"),
                    column.get("ColumnDataType"),
                    column.get("DataType"),
                )
                or "String"
            )
            if kind == "query":
                source = get_text_safe(column.get("ColumnSource"))
            elif kind == "calc":
                source = get_text_safe(column.get("Expression"))
            else:
                source = "Table Definition"
            self._columns[name] = ColumnInfo(data_type, source, origin)

    def lookup(self, name: str) -> Optional[ColumnInfo]:
        return self._columns.get(name)


@dataclass
class Registry:
    """Cross-cutting metadata built once per transformation run."""

    variables: Dict[str, VariableEntry] = field(default_factory=dict)
    variable_set: OrderedNameSet = field(default_factory=OrderedNameSet)
    table_set: OrderedNameSet = field(default_factory=OrderedNameSet)
    step_output_set: OrderedNameSet = field(default_factory=OrderedNameSet)

    def usage_of(self, name: str) -> List[str]:
        entry = self.variables.get(name)
        return entry.used_in if entry else []


def _name_field(value: Any) -> str:
    """Return a usable name from a plain string or text node, else ``""``."""
    if isinstance(value, (str, dict)):
        name = get_text_safe(value).strip()
        if isinstance(value, dict) and name.startswith("{"):
            return ""
        return name
    return ""


class RegistryBuilder:
    """Collects variables, table names and step outputs in one forward pass."""

    def build(self, records: List[StepRecord]) -> Registry:
        registry = Registry()
        for record in records:
            self._collect_tables(record, registry)
            self._collect_variables(record, registry)
            self._collect_outputs(record, registry)
        logger.debug(
            f"Registry: {len(registry.variables)} variables, "
            f"{len(registry.table_set)} tables, "
            f"{len(registry.step_output_set)} step outputs"
        )
        return registry

    def _collect_tables(self, record: StepRecord, registry: Registry) -> None:
        storage = record.storage
        candidates = [storage.get(key) for key in TABLE_FIELDS]
        candidates.append(record.raw.get("OutputTableName"))
        for candidate in candidates:
            name = _name_field(candidate)
            if name and name not in SENTINEL_NAMES:
                registry.table_set.add(name)

    def _collect_variables(self, record: StepRecord, registry: Registry) -> None:
        storage = record.storage
        if record.step_type in VARIABLE_STEP_TYPES:
            name = get_text_safe(storage.get("VariableName")).strip()
            if not name:
                return
            value = (
                first_text(storage.get("VariableValue"), storage.get("Expression"))
                or MISSING_VALUE
            )
            self._register(registry, name, value, record.display_name, "Var")
        elif record.step_type == "Loop":
            name = get_text_safe(storage.get("InputVariable")).strip()
            if name:
                self._register(
                    registry,
                    name,
                    LOOP_CONDITION_VALUE,
                    record.display_name,
                    "Iterator",
                )

    def _register(
        self, registry: Registry, name: str, value: str, declared_by: str, kind: str
    ) -> None:
        # Later declarations overwrite earlier ones but keep their position
        registry.variables[name] = VariableEntry(
            name=name, value=value, declared_by=declared_by, kind=kind
        )
        registry.variable_set.add(name)

    def _collect_outputs(self, record: StepRecord, registry: Registry) -> None:
        storage = record.storage
        named_output = False
        for key in OUTPUT_NAME_FIELDS:
            name = _name_field(storage.get(key))
            if name:
                registry.step_output_set.add(name)
                named_output = True
        if record.step_type == "LoadTextFile" and not named_output:
            registry.step_output_set.add(TEXT_FILE_BUFFER)


def serialize_parameters(storage: Dict[str, Any]) -> str:
    """Flatten a parameter bag to text for containment tests."""
    return json.dumps(storage, ensure_ascii=False, default=str)


class UsageIndexer:
    """Cross-references parameter bags against registered variable names.

    Matching is plain substring containment over the serialized parameter
    bag, so a variable whose name is part of a longer token also matches.
    """

    def index(self, records: List[StepRecord], registry: Registry) -> None:
        if not registry.variables:
            return
        for record in records:
            text = serialize_parameters(record.storage)
            step_name = record.display_name
            for name, entry in registry.variables.items():
                if name in text and step_name not in entry.used_in:
                    entry.used_in.append(step_name)
