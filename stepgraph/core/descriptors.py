"""Step Descriptor Synthesizer.

Turns one StepRecord into an ExecutionNode: a mode-aware context sentence, a
compact flow label, input/output names, a details list and, for steps that
project tabular data, a headered row list. Dispatch is by step type tag
through lookup tables; unknown tags fall through to the default arm and are
described by their tag alone.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from stepgraph.core.criteria import describe_exists_filters, flatten_criteria
from stepgraph.core.expressions import flatten_expression
from stepgraph.core.modes import Mode
from stepgraph.core.nodes import ExecutionNode, FieldDefinition, StepOutput, TableRow
from stepgraph.core.records import StepRecord
from stepgraph.core.registry import (
    SENTINEL_NAMES,
    TEXT_FILE_BUFFER,
    ColumnCatalog,
    Registry,
)
from stepgraph.core.text import (
    basename,
    first_text,
    get_list_safe,
    get_path,
    get_text_safe,
    truncate,
)

# Housekeeping steps hidden from business readers
BUSINESS_HIDDEN_TYPES = frozenset({"PurgeTable", "CreateTable", "DeleteTable"})

QUERY_TYPES = frozenset({"RunDirectQuery", "RunTableQuery"})
DATASOURCE_TYPES = frozenset({"RunDatasourceQuery", "RunSimpleQuery"})
CALCULATED_COLUMN_TYPES = frozenset({"AddColumn", "UpdateColumn"})
VARIABLE_TYPES = frozenset({"SetVariable", "CalculateVariable"})
TEXT_FILE_TYPES = frozenset({"LoadTextFile", "SaveText", "SaveTextfile"})
FILTERED_TYPES = (
    QUERY_TYPES
    | DATASOURCE_TYPES
    | frozenset(
        {
            "RunAnalyserQuery",
            "ImportWarehouseData",
            "DeleteWarehouseData",
            "FilterTable",
        }
    )
)
# Steps whose TableName is what they produce rather than what they read
TABLE_DEFINING_TYPES = frozenset({"CreateTable", "SetVariable", "CalculateVariable"})

IMPORT_MODES = {
    "IU": "Insert or Update",
    "I": "Insert Only",
    "U": "Update Only",
    "D": "Delete",
    "R": "Replace",
}

QUERY_HEADERS = ["Column Name", "Source Field", "Type", "Action"]
FORMULA_HEADERS = ["Field", "Formula", "Type"]
VARIABLE_HEADERS = ["Variable", "Expression", "Type"]
MAPPING_HEADERS = ["Target Column", "Source / Value", "Type", "Origin Step"]
JOIN_HEADERS = ["Left", "Condition"]
TABLE_HEADERS = ["Column Name", "Type"]

LONG_CONDITION_CHARS = 50
EMAIL_SUBJECT_CHARS = 20
USAGE_PREVIEW_COUNT = 3

CONTEXT_TEMPLATES: Dict[Mode, Dict[str, str]] = {
    Mode.BUSINESS: {
        "RunDirectQuery": "Get data from {table}",
        "RunTableQuery": "Use data from {table}",
        "RunDatasourceQuery": "Get data from {datasource}",
        "RunSimpleQuery": "Get data from {datasource}",
        "RunAnalyserQuery": "Get analysis data from {datasource}",
        "LoadAnalyserData": "Load analysis data into {target}",
        "AddColumn": "Calculate fields",
        "UpdateColumn": "Update fields",
        "ImportWarehouseData": "Save to {target}",
        "DeleteWarehouseData": "Remove data from {target}",
        "JoinTable": "Combine with {join_table}",
        "AppendTable": "Add rows to {append_table}",
        "FilterTable": "Keep matching rows of {table}",
        "SortTable": "Sort {table}",
        "SetVariable": "Remember {variable}",
        "CalculateVariable": "Work out {variable}",
        "Loop": "Repeat for {iterator}",
        "Decision": "Check {input_table}",
        "Branch": "If {expression}",
        "ExportToExcel": "Export {export_table} to Excel",
        "SendEmail": "Send an email to {send_to}",
        "LoadTextFile": "Read {file_label}",
        "SaveText": "Save data to {file_label}",
        "SaveTextfile": "Save data to {file_label}",
        "RunSqlStatement": "Run a database update",
        "RunScript": "Run a script",
        "RunProcess": "Run the {process} process",
    },
    Mode.TECHNICAL: {
        "RunDirectQuery": "Connects to source to pull {table}",
        "RunTableQuery": "Reads internal {table}",
        "RunDatasourceQuery": "{datasource} ➔ {target}",
        "RunSimpleQuery": "{datasource} ➔ {target}",
        "RunAnalyserQuery": "Queries analyser {datasource} into {target}",
        "LoadAnalyserData": "Loads analyser data into {target}",
        "AddColumn": "Calculates fields in {table}",
        "UpdateColumn": "Updates values in {table}",
        "ImportWarehouseData": "Publishes to {target}",
        "DeleteWarehouseData": "Deletes warehouse rows from {target}",
        "JoinTable": "Joins {join_left} with {join_table}",
        "AppendTable": "Appends {table} to {append_table}",
        "CreateTable": "Creates table {new_table}",
        "PurgeTable": "Purges {purge_table}",
        "DeleteTable": "Drops {table}",
        "FilterTable": "Filters {table}",
        "SortTable": "Sorts {table}",
        "SetVariable": "Sets {variable}",
        "CalculateVariable": "Calculates {variable}",
        "Loop": "Iterates over {iterator}",
        "ExportToExcel": "Export {export_table} to Excel",
        "SendEmail": "Send Email to {send_to}",
        "LoadTextFile": "Load Text File into {memory_table}",
        "SaveText": "Save {memory_table} to {file_name}",
        "SaveTextfile": "Save {memory_table} to {file_name}",
        "Decision": "Decision on {input_table}",
        "Branch": "If {expression}",
        "RunSqlStatement": "Executes SQL against {datasource}",
        "RunScript": "Runs script",
        "RunProcess": "Calls process {process}",
    },
}


@dataclass
class DescriptorContext:
    """Per-run state the synthesizer reads; built once per top-level call."""

    mode: Mode
    registry: Registry
    columns: ColumnCatalog = field(default_factory=ColumnCatalog)


def is_retained(record: StepRecord, mode: Mode) -> bool:
    """Whether a step (and its subtree) appears in the given mode.

    Business mode drops inactive steps and housekeeping table steps, except
    structural control-flow steps, which are always kept.
    """
    if mode is not Mode.BUSINESS or record.is_structural:
        return True
    return record.is_active and record.step_type not in BUSINESS_HIDDEN_TYPES


def resolve_fields(record: StepRecord) -> Dict[str, str]:
    """Resolve the values context and flow label templates interpolate."""
    storage = record.storage
    text = get_text_safe
    table = (
        first_text(storage.get("TableName"), storage.get("InputTableName"))
        or "dataset"
    )
    file_name = text(storage.get("FileName"))
    return {
        "table": table,
        "target": first_text(storage.get("OutputTableName"), storage.get("TableName"))
        or "target",
        "input_table": text(storage.get("InputTableName")) or "Table",
        "join_left": text(storage.get("JoinTable1")) or table,
        "join_table": text(storage.get("JoinTable2")),
        "append_table": text(storage.get("AppendToTableName")) or "Table",
        "purge_table": first_text(storage.get("TableToPurge"), storage.get("TableName"))
        or "Table",
        "new_table": first_text(
            get_path(record.output_table_definition, "TableName"),
            storage.get("OutputTableName"),
            storage.get("TableName"),
        )
        or "New Table",
        "memory_table": text(storage.get("MemoryTableName")) or table,
        "export_table": text(storage.get("ExportMemoryTableName")) or table,
        "file_name": file_name or "Text File",
        "file_label": basename(file_name) or "a file",
        "datasource": first_text(
            storage.get("DatasourceName"),
            get_path(storage, "DataSource", "Description"),
        )
        or "Datasource",
        "send_to": text(storage.get("SendTo")),
        "iterator": text(storage.get("InputVariable")),
        "variable": text(storage.get("VariableName")),
        "expression": text(storage.get("Expression")),
        "process": text(storage.get("ProcessName")) or "process",
    }


class StepDescriptorSynthesizer:
    """Builds ExecutionNodes for one transformation run."""

    def __init__(self, context: DescriptorContext):
        self.context = context

    @property
    def mode(self) -> Mode:
        return self.context.mode

    def describe(self, record: StepRecord, depth: int) -> ExecutionNode:
        """Describe one step; children are attached by the caller."""
        step_type = record.step_type
        fields = resolve_fields(record)
        name = record.display_name

        node = ExecutionNode(
            node_id=re.sub(r"[^a-zA-Z0-9]", "_", f"{step_type}_{name}"),
            step_id=record.step_id,
            raw_type=step_type,
            name=name,
            phase=step_type if record.is_active else f"{step_type} [DISABLED]",
            is_active=record.is_active,
            depth=depth,
            description=record.description,
        )
        node.context = self.build_context(record, fields)
        node.flow_label = build_flow_label(record, fields, node.context)
        node.smart_description = self.build_smart_description(record)
        node.inputs, node.outputs = collect_io(record)
        node.output = explicit_output(record)

        self.add_general_details(record, node)
        handler = DETAIL_HANDLERS.get(step_type)
        if handler is not None:
            handler(self, record, node, fields)
        self.add_trailing_details(record, node)
        return node

    def build_context(self, record: StepRecord, fields: Dict[str, str]) -> str:
        template = CONTEXT_TEMPLATES[self.mode].get(record.step_type)
        if template is None:
            return record.step_type
        return template.format_map(fields)

    def build_smart_description(self, record: StepRecord) -> str:
        if record.step_type == "Loop":
            return infer_loop_purpose(record)
        if record.step_type in VARIABLE_TYPES:
            name = get_text_safe(record.storage.get("VariableName")).strip()
            used_in = self.context.registry.usage_of(name)
            if used_in:
                preview = ", ".join(used_in[:USAGE_PREVIEW_COUNT])
                more = "..." if len(used_in) > USAGE_PREVIEW_COUNT else ""
                return f"Used in: {preview}{more}"
        return ""

    def add_general_details(self, record: StepRecord, node: ExecutionNode) -> None:
        storage = record.storage
        join_type = get_text_safe(storage.get("JoinType"))
        if join_type:
            node.details.append(f"Join Type: {join_type}")

        sort_columns = []
        for column in get_list_safe(storage.get("SortColumns"), "SortColumnItem"):
            if not isinstance(column, dict):
                continue
            column_name = get_text_safe(column.get("ColumnName"))
            direction = get_text_safe(column.get("SortDirection"))
            sort_columns.append(f"{column_name} {direction}".strip())
        if sort_columns:
            node.details.append(f"Sort Order: {', '.join(sort_columns)}")

    def add_trailing_details(self, record: StepRecord, node: ExecutionNode) -> None:
        storage = record.storage
        if record.step_type in FILTERED_TYPES:
            node.details.extend(
                f"Filter: {predicate}" for predicate in flatten_criteria(storage)
            )

        data_dictionary = build_data_dictionary(record)
        if data_dictionary:
            node.data_dictionary = data_dictionary

        exists_logic = describe_exists_filters(storage)
        if exists_logic:
            node.exists_logic = exists_logic

        extended_where = get_text_safe(storage.get("ExtendedWhere"))
        if extended_where:
            node.details.append(f"Extended Criteria: {extended_where}")

    def column_info(self, source_value: str):
        return self.context.columns.lookup(source_value.strip().strip("[]"))


def _add_name(names: List[str], value: Any) -> None:
    name = get_text_safe(value).strip()
    if name and name not in names and name not in SENTINEL_NAMES:
        names.append(name)


def collect_io(record: StepRecord):
    """Ordered input and output names of a step."""
    storage = record.storage
    inputs: List[str] = []
    outputs: List[str] = []

    for key in (
        "InputTableName",
        "JoinTable1",
        "JoinTable2",
        "FilterTableName",
        "ExportMemoryTableName",
        "InputVariable",
    ):
        _add_name(inputs, storage.get(key))
    if record.step_type not in TABLE_DEFINING_TYPES:
        _add_name(inputs, storage.get("TableName"))

    for key in (
        "OutputTableName",
        "AppendToTableName",
        "VariableName",
        "OutputVariable",
        "ResultVariable",
        "MemoryTableName",
    ):
        _add_name(outputs, storage.get(key))
    if record.step_type == "LoadTextFile" and not outputs:
        outputs.append(TEXT_FILE_BUFFER)
    if record.step_type == "CreateTable":
        _add_name(outputs, storage.get("TableName"))
    return inputs, outputs


def explicit_output(record: StepRecord) -> Optional[StepOutput]:
    """The ``{kind, name}`` a step produces, if it has a discernible one."""
    storage = record.storage
    target = first_text(
        storage.get("OutputTableName"),
        storage.get("TableName"),
        storage.get("VariableName"),
    )
    step_type = record.step_type
    if step_type == "ImportWarehouseData":
        kind, name = "WAREHOUSE", target
    elif step_type == "JoinTable":
        kind, name = "TABLE", target
    elif step_type == "CreateTable":
        kind = "TABLE"
        name = target or get_text_safe(
            get_path(record.output_table_definition, "TableName")
        )
    elif step_type == "AppendTable":
        kind, name = "TABLE", get_text_safe(storage.get("AppendToTableName"))
    elif step_type in VARIABLE_TYPES:
        kind, name = "VAR", target
    elif step_type == "Loop":
        kind, name = "ITERATOR", get_text_safe(storage.get("InputVariable"))
    else:
        return None
    name = name.strip()
    return StepOutput(kind=kind, name=name) if name else None


def infer_loop_purpose(record: StepRecord) -> str:
    """Guess what a loop is for from the kinds of steps it contains."""
    child_types = {child.step_type for child in record.children}
    if child_types & QUERY_TYPES:
        return "Fetching detailed data for each item"
    if "ImportWarehouseData" in child_types:
        return "Saving results for each item"
    if "CalculateVariable" in child_types:
        return "Participating in complex calculations"
    return "Processing items in batch"


def _email_label(storage: Dict[str, Any]) -> str:
    subject = get_text_safe(storage.get("SubjectLine"))
    attachments = get_list_safe(
        storage.get("SendEmailAttachmentConfigItems"), "SendEmailAttachmentConfigItem"
    )
    shown = subject[:EMAIL_SUBJECT_CHARS] + "..." if subject else "No Subject"
    label = f'Email: "{shown}"'
    if attachments:
        label += f" (+{len(attachments)} att)"
    return label


def build_flow_label(record: StepRecord, fields: Dict[str, str], context: str) -> str:
    """Compact one-line label for diagrams and summaries."""
    storage = record.storage
    step_type = record.step_type
    file_label = basename(get_text_safe(storage.get("FileName"))) or "File"

    if step_type in VARIABLE_TYPES:
        value = first_text(storage.get("VariableValue"), storage.get("Expression"))
        return f"{fields['variable']} = {value}"
    if step_type in ("Decision", "Branch"):
        expression = fields["expression"]
        return f"If {expression}" if expression else f"Decision on {fields['table']}"
    if step_type == "ExportToExcel":
        return f"Export to Excel: {file_label}"
    if step_type == "SendEmail":
        return _email_label(storage)
    if step_type in TEXT_FILE_TYPES:
        verb = "Load" if step_type == "LoadTextFile" else "Save"
        return f"{verb} Text: {file_label}"
    if step_type in DATASOURCE_TYPES or step_type == "RunDirectQuery":
        if step_type == "RunDatasourceQuery":
            description = get_path(storage, "DataSource", "Description")
            source = get_text_safe(description) or "Datasource"
        elif step_type == "RunDirectQuery":
            source = f"Query: {fields['table']}"
        else:
            source = fields["table"]
        return f"{source} ➔ {fields['target']}"
    if step_type == "ImportWarehouseData":
        return f"Save to Warehouse: {fields['target']}"
    if step_type == "PurgeTable":
        return f"Purge: {fields['purge_table']}"
    if step_type == "DeleteWarehouseData":
        return f"Delete Warehouse Data: {fields['target']}"
    if step_type == "CreateTable":
        return f"Create Table: {fields['new_table']}"
    if step_type == "AppendTable":
        return f"Append to: {fields['append_table']}"
    if step_type == "Loop" and fields["iterator"]:
        return f"For each {fields['iterator']}"
    if step_type == "RunProcess":
        return f"Run Process: {fields['process']}"
    return context


def build_data_dictionary(record: StepRecord) -> List[FieldDefinition]:
    """Field definitions from ``DynamicFields`` or the output table definition."""
    items = get_list_safe(record.storage.get("DynamicFields"), "Field")
    if not items:
        columns = record.output_table_definition.get("Columns")
        items = get_list_safe(columns, "ColumnItem")

    entries = []
    for item in items:
        if not isinstance(item, dict):
            continue
        definition = get_path(item, "FieldDef", "ValueObjectFieldDefinitionOfString")
        if not isinstance(definition, dict):
            definition = item
        name = first_text(item.get("@_Name"), item.get("ColumnName"))
        if not name:
            continue
        description = item.get("Description")
        if isinstance(description, dict) and "string" in description:
            description = description["string"]
        entries.append(
            FieldDefinition(
                name=name,
                data_type=first_text(
                    definition.get("FieldType"), definition.get("ColumnType")
                )
                or "String",
                length=get_text_safe(definition.get("MaxLength")),
                description=get_text_safe(description),
            )
        )
    return entries


def _column_rows(columns: List[Any]) -> List[TableRow]:
    rows = []
    for column in columns:
        if not isinstance(column, dict):
            continue
        name = get_text_safe(column.get("ColumnName"))
        rows.append(
            TableRow(
                cells=[
                    name,
                    get_text_safe(column.get("ColumnSource")) or name or "-",
                    first_text(column.get("ColumnDataType"), column.get("DataType"))
                    or "String",
                    get_text_safe(column.get("ColumnActionType")) or "Display",
                ]
            )
        )
    return rows


def _set_table(node: ExecutionNode, headers: List[str], rows: List[TableRow]) -> None:
    if rows:
        node.headers = list(headers)
        node.table_data = rows


# --- Per-type detail handlers -------------------------------------------------

DetailHandler = Callable[
    [StepDescriptorSynthesizer, StepRecord, ExecutionNode, Dict[str, str]], None
]


def _query_details(
    synth: StepDescriptorSynthesizer,
    record: StepRecord,
    node: ExecutionNode,
    fields: Dict[str, str],
) -> None:
    node.details.append(f"Source Table: {fields['table']}")
    columns = get_list_safe(record.storage.get("Columns"), "ColumnItem")
    _set_table(node, QUERY_HEADERS, _column_rows(columns))


def _calculated_column_details(
    synth: StepDescriptorSynthesizer,
    record: StepRecord,
    node: ExecutionNode,
    fields: Dict[str, str],
) -> None:
    rows = []
    for column in get_list_safe(record.storage.get("Columns"), "ColumnItemDef"):
        if not isinstance(column, dict):
            continue
        expression = get_text_safe(column.get("Expression"))
        rows.append(
            TableRow(
                cells=[
                    get_text_safe(column.get("ColumnName")),
                    expression,
                    get_text_safe(column.get("ColumnType")) or "String",
                ],
                rules=flatten_expression(expression),
            )
        )
    _set_table(node, FORMULA_HEADERS, rows)


def _variable_details(
    synth: StepDescriptorSynthesizer,
    record: StepRecord,
    node: ExecutionNode,
    fields: Dict[str, str],
) -> None:
    storage = record.storage
    expression = first_text(storage.get("Expression"), storage.get("VariableValue"))
    rules = flatten_expression(expression)
    node.headers = list(VARIABLE_HEADERS)
    node.table_data = [
        TableRow(cells=[fields["variable"], expression, "Variable"], rules=rules)
    ]
    node.logic_rules = rules


def _import_details(
    synth: StepDescriptorSynthesizer,
    record: StepRecord,
    node: ExecutionNode,
    fields: Dict[str, str],
) -> None:
    storage = record.storage
    rows = []
    for mapping in get_list_safe(storage.get("ColumnMapping"), "TableColumnMapping"):
        if not isinstance(mapping, dict):
            continue
        source_value = get_text_safe(mapping.get("MappedValue"))
        info = synth.column_info(source_value)
        data_type = first_text(
            mapping.get("ColumnDataType"),
            mapping.get("DataType"),
            mapping.get("ColumnType"),
        ) or (info.data_type if info else "String")
        rows.append(
            TableRow(
                cells=[
                    get_text_safe(mapping.get("ColumnName")),
                    source_value,
                    data_type,
                    (info.origin if info else "") or "-",
                ]
            )
        )
    _set_table(node, MAPPING_HEADERS, rows)

    code = get_text_safe(storage.get("ImportOption"))
    label = IMPORT_MODES.get(code, code)
    if label:
        node.details.append(f"Mode: {label}")


def _join_details(
    synth: StepDescriptorSynthesizer,
    record: StepRecord,
    node: ExecutionNode,
    fields: Dict[str, str],
) -> None:
    rows = []
    for join in get_list_safe(record.storage.get("Joins"), "JoinItemDef"):
        if not isinstance(join, dict):
            continue
        text = get_text_safe
        rows.append(
            TableRow(
                cells=[
                    f"{text(join.get('JoinTable1'))}.{text(join.get('JoinColumn1'))}",
                    f"{text(join.get('JoinType'))} "
                    f"{text(join.get('JoinTable2'))}.{text(join.get('JoinColumn2'))}",
                ]
            )
        )
    _set_table(node, JOIN_HEADERS, rows)


def _create_table_details(
    synth: StepDescriptorSynthesizer,
    record: StepRecord,
    node: ExecutionNode,
    fields: Dict[str, str],
) -> None:
    definition = record.output_table_definition
    columns = get_list_safe(definition.get("Columns"), "ColumnItem")
    if not columns:
        columns = get_list_safe(
            get_path(definition, "TableDefinition", "Columns"), "TableColumnDefinition"
        )
    rows = [
        TableRow(
            cells=[
                get_text_safe(column.get("ColumnName")),
                get_text_safe(column.get("ColumnType")) or "String",
            ]
        )
        for column in columns
        if isinstance(column, dict)
    ]
    _set_table(node, TABLE_HEADERS, rows)


def _excel_details(
    synth: StepDescriptorSynthesizer,
    record: StepRecord,
    node: ExecutionNode,
    fields: Dict[str, str],
) -> None:
    storage = record.storage
    file_name = get_text_safe(storage.get("FileName"))
    location = get_text_safe(storage.get("FileLocation"))
    if file_name:
        suffix = f" ({location})" if location else ""
        node.details.append(f"File: {file_name}{suffix}")
    sheet = get_text_safe(storage.get("SheetName"))
    if sheet:
        node.details.append(f"Sheet: {sheet}")
    if get_text_safe(storage.get("UpdateExistingSheet")).lower() == "true":
        node.details.append("Mode: Append to Sheet")


def _email_details(
    synth: StepDescriptorSynthesizer,
    record: StepRecord,
    node: ExecutionNode,
    fields: Dict[str, str],
) -> None:
    storage = record.storage
    node.details.append(f"Subject: {get_text_safe(storage.get('SubjectLine'))}")
    node.details.append(f"To: {get_text_safe(storage.get('SendTo'))}")
    for attachment in get_list_safe(
        storage.get("SendEmailAttachmentConfigItems"), "SendEmailAttachmentConfigItem"
    ):
        if isinstance(attachment, dict):
            mask = get_text_safe(attachment.get("FileMask"))
            node.details.append(f"Attachment: {mask}")


def _text_file_details(
    synth: StepDescriptorSynthesizer,
    record: StepRecord,
    node: ExecutionNode,
    fields: Dict[str, str],
) -> None:
    storage = record.storage
    file_name = get_text_safe(storage.get("FileName"))
    if file_name:
        node.details.append(f"File: {file_name}")
    if record.step_type != "LoadTextFile":
        return
    for key, label in (
        ("FileEncoding", "Encoding"),
        ("StartCondition", "Start When"),
        ("StopCondition", "Stop When"),
    ):
        value = get_text_safe(storage.get(key))
        if value:
            node.details.append(f"{label}: {value}")


def _datasource_details(
    synth: StepDescriptorSynthesizer,
    record: StepRecord,
    node: ExecutionNode,
    fields: Dict[str, str],
) -> None:
    storage = record.storage
    datasource = first_text(
        get_path(storage, "DataSource", "@_Description"),
        get_path(storage, "DataSource", "Description"),
    ) or "Datasource"
    node.details.append(f"Source: {datasource}")

    if synth.mode is Mode.TECHNICAL:
        for parameter in get_list_safe(
            storage.get("DataSourceParameters"), "DataSourceParameterItem"
        ):
            if isinstance(parameter, dict):
                name = get_text_safe(parameter.get("DataSourceParameterName"))
                value = get_text_safe(parameter.get("DataSourceParameterValue"))
                node.details.append(f"Param: {name} = {value}")

    if record.step_type == "RunSimpleQuery":
        columns = get_list_safe(storage.get("Columns"), "ColumnItem")
        _set_table(node, QUERY_HEADERS, _column_rows(columns))


def _analyser_details(
    synth: StepDescriptorSynthesizer,
    record: StepRecord,
    node: ExecutionNode,
    fields: Dict[str, str],
) -> None:
    node.details.append(f"Source: {fields['datasource']}")


def _branch_details(
    synth: StepDescriptorSynthesizer,
    record: StepRecord,
    node: ExecutionNode,
    fields: Dict[str, str],
) -> None:
    expression = fields["expression"]
    if len(expression) > LONG_CONDITION_CHARS:
        node.details.append(f"Full Condition: {expression}")
    node.logic_rules = flatten_expression(expression)


def _decision_details(
    synth: StepDescriptorSynthesizer,
    record: StepRecord,
    node: ExecutionNode,
    fields: Dict[str, str],
) -> None:
    input_table = get_text_safe(record.storage.get("InputTableName"))
    if input_table:
        node.details.append(f"Input: {input_table}")


def _loop_details(
    synth: StepDescriptorSynthesizer,
    record: StepRecord,
    node: ExecutionNode,
    fields: Dict[str, str],
) -> None:
    storage = record.storage
    if fields["iterator"]:
        node.details.append(f"Iterator: {fields['iterator']}")
    start = get_text_safe(storage.get("StartValue"))
    end = get_text_safe(storage.get("EndValue"))
    if start or end:
        node.details.append(f"Range: {start or '?'} to {end or '?'}")


def _sql_details(
    synth: StepDescriptorSynthesizer,
    record: StepRecord,
    node: ExecutionNode,
    fields: Dict[str, str],
) -> None:
    if synth.mode is Mode.TECHNICAL:
        sql = get_text_safe(record.storage.get("SqlStatement")).strip()
        if sql:
            node.details.append(f"SQL: {truncate(sql)}")


def _script_details(
    synth: StepDescriptorSynthesizer,
    record: StepRecord,
    node: ExecutionNode,
    fields: Dict[str, str],
) -> None:
    if synth.mode is Mode.TECHNICAL:
        script = get_text_safe(record.storage.get("ScriptText")).strip()
        if script:
            node.details.append(f"Script: {truncate(script)}")


def _process_details(
    synth: StepDescriptorSynthesizer,
    record: StepRecord,
    node: ExecutionNode,
    fields: Dict[str, str],
) -> None:
    process = get_text_safe(record.storage.get("ProcessName"))
    if process:
        node.details.append(f"Process: {process}")


DETAIL_HANDLERS: Dict[str, DetailHandler] = {
    "RunDirectQuery": _query_details,
    "RunTableQuery": _query_details,
    "AddColumn": _calculated_column_details,
    "UpdateColumn": _calculated_column_details,
    "SetVariable": _variable_details,
    "CalculateVariable": _variable_details,
    "ImportWarehouseData": _import_details,
    "JoinTable": _join_details,
    "CreateTable": _create_table_details,
    "ExportToExcel": _excel_details,
    "SendEmail": _email_details,
    "LoadTextFile": _text_file_details,
    "SaveText": _text_file_details,
    "SaveTextfile": _text_file_details,
    "RunDatasourceQuery": _datasource_details,
    "RunSimpleQuery": _datasource_details,
    "RunAnalyserQuery": _analyser_details,
    "LoadAnalyserData": _analyser_details,
    "Branch": _branch_details,
    "Decision": _decision_details,
    "Loop": _loop_details,
    "RunSqlStatement": _sql_details,
    "RunScript": _script_details,
    "RunProcess": _process_details,
}
