"""One-sentence narrative of what a process does, from its execution flow."""

from typing import Dict, List, Optional

from stepgraph.core.nodes import ExecutionNode
from stepgraph.core.registry import SENTINEL_NAMES, TEXT_FILE_BUFFER

EMPTY_SUMMARY = "This process performs a sequence of data operations."

CALCULATION_TYPES = frozenset({"AddColumn", "UpdateColumn", "CalculateVariable"})
CONDITION_TYPES = frozenset({"Decision", "Branch"})


def _detail_value(node: ExecutionNode, *prefixes: str) -> Optional[str]:
    for detail in node.details:
        for prefix in prefixes:
            if detail.startswith(prefix):
                value = detail[len(prefix) :].strip()
                return value or None
    return None


def normalize_table_name(name: str) -> str:
    return name.strip().strip("[]").strip()


def _collect_sources(flow: List[ExecutionNode]) -> List[str]:
    sources: Dict[str, str] = {}
    for node in flow:
        for name in node.inputs:
            if name not in SENTINEL_NAMES and name != TEXT_FILE_BUFFER:
                key = normalize_table_name(name)
                sources.setdefault(key, key)

        if node.raw_type in ("RunDirectQuery", "RunTableQuery"):
            table = _detail_value(node, "Source Table:")
        elif node.raw_type in (
            "RunDatasourceQuery",
            "RunSimpleQuery",
            "RunAnalyserQuery",
            "LoadAnalyserData",
        ):
            table = _detail_value(node, "Source:")
        elif node.raw_type == "LoadTextFile":
            table = _detail_value(node, "File:")
        else:
            table = None
        if table and table not in SENTINEL_NAMES:
            key = normalize_table_name(table)
            sources.setdefault(key, key)
    return list(sources.values())


def _collect_targets(flow: List[ExecutionNode]) -> List[str]:
    targets: Dict[str, str] = {}
    for node in flow:
        if node.raw_type == "ImportWarehouseData":
            warehouse = (node.output.name if node.output else "") or "Warehouse"
            targets.setdefault(f"WAREHOUSE_{warehouse}", f"the {warehouse.strip()}")
        elif node.raw_type == "ExportToExcel":
            file_name = _detail_value(node, "File:")
            label = f"{file_name} (Excel)" if file_name else "an Excel file"
            targets.setdefault(f"EXCEL_{file_name}", label)
        elif node.raw_type == "SendEmail":
            targets.setdefault("EMAIL", "Email recipients")
        elif node.raw_type in ("SaveText", "SaveTextfile"):
            file_name = _detail_value(node, "File:")
            label = f"{file_name} (Text file)" if file_name else "a Text file"
            targets.setdefault(f"TEXT_{file_name}", label)
        else:
            for name in node.outputs:
                if name not in SENTINEL_NAMES:
                    key = normalize_table_name(name)
                    targets.setdefault(key, f"the {key}")
    return list(targets.values())


def summarize_flow(flow: List[ExecutionNode]) -> str:
    """Describe the process as sources, transformations and destinations.

    Args:
        flow: Depth-first list of nodes, as in ExecutionModel.execution_flow

    Returns:
        A single sentence
    """
    sources = _collect_sources(flow)
    targets = _collect_targets(flow)
    types = {node.raw_type for node in flow}

    parts = []
    if sources:
        parts.append(f"extracts data from {', '.join(sources)}")
    if "JoinTable" in types:
        parts.append("combines multiple datasets")
    if types & CALCULATION_TYPES:
        parts.append("performs business calculations")
    if targets:
        if types & CONDITION_TYPES:
            parts.append(
                "based on certain conditions, distributes results to "
                + ", ".join(targets)
            )
        else:
            parts.append(f"publishes results to {', '.join(targets)}")

    if not parts:
        return EMPTY_SUMMARY

    if len(parts) > 1:
        narrative = ", ".join(parts[:-1]) + " and " + parts[-1]
    else:
        narrative = parts[0]
    return f"This process {narrative}."
