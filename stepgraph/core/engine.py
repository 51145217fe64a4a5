"""One-call transformation from a step container to an ExecutionModel.

Control flow: normalize the flat records into a forest, build the registry
and usage index from the flat list, then walk the forest depth-first,
describing each retained step.
"""

from typing import Any, Dict, List, Optional, Union

from stepgraph.core.descriptors import (
    CALCULATED_COLUMN_TYPES,
    QUERY_TYPES,
    DescriptorContext,
    StepDescriptorSynthesizer,
    is_retained,
)
from stepgraph.core.modes import Mode
from stepgraph.core.nodes import ExecutionModel, ExecutionNode
from stepgraph.core.normalizer import StepNormalizer
from stepgraph.core.records import StepRecord
from stepgraph.core.registry import RegistryBuilder, UsageIndexer
from stepgraph.core.text import get_list_safe
from stepgraph.errors import InputContainerError
from stepgraph.logging import get_logger

logger = get_logger(__name__)

CONTAINER_KEY = "ArrayOfStep"
STEP_KEY = "Step"


def extract_step_records(container: Any) -> List[Dict[str, Any]]:
    """Return the container's step list, normalizing a single record to a list.

    Raises:
        InputContainerError: If the container has no ``ArrayOfStep`` entry
    """
    if not isinstance(container, dict):
        raise InputContainerError(
            f"Step container must be a mapping, got {type(container).__name__}"
        )
    if CONTAINER_KEY not in container:
        raise InputContainerError(
            f"Step container is missing its '{CONTAINER_KEY}' list",
            available_keys=sorted(str(key) for key in container),
        )
    return [
        step for step in get_list_safe(container[CONTAINER_KEY], STEP_KEY)
        if isinstance(step, dict)
    ]


def parse_steps(
    container: Dict[str, Any], mode: Optional[Union[str, Mode]] = None
) -> ExecutionModel:
    """Build the execution model for a decoded step container.

    Args:
        container: Mapping with ``ArrayOfStep.Step`` (one record or a list)
        mode: ``business`` or ``technical``; defaults to technical

    Returns:
        A fresh ExecutionModel
    """
    return build_execution_model(extract_step_records(container), mode)


def build_execution_model(
    raw_steps: List[Dict[str, Any]], mode: Optional[Union[str, Mode]] = None
) -> ExecutionModel:
    """Build the execution model from an already-normalized step list."""
    resolved_mode = Mode.parse(mode)
    normalizer = StepNormalizer()
    roots = normalizer.normalize(raw_steps)
    records = normalizer.records

    registry = RegistryBuilder().build(records)
    UsageIndexer().index(records, registry)

    walker = _TreeWalker(DescriptorContext(mode=resolved_mode, registry=registry))
    tree = walker.walk_forest(roots)

    logger.debug(
        f"Built {resolved_mode.value} model: {len(walker.flow)} of "
        f"{len(records)} steps described"
    )
    return ExecutionModel(
        execution_tree=tree,
        execution_flow=walker.flow,
        variables=list(registry.variables.values()),
        variable_set=registry.variable_set,
        table_set=registry.table_set,
        step_output_set=registry.step_output_set,
    )


class _TreeWalker:
    """Depth-first walk that describes retained steps and collects the flow."""

    def __init__(self, context: DescriptorContext):
        self.context = context
        self.synthesizer = StepDescriptorSynthesizer(context)
        self.flow: List[ExecutionNode] = []

    def walk_forest(self, roots: List[StepRecord]) -> List[ExecutionNode]:
        tree = []
        for record in roots:
            node = self.walk(record, 0)
            if node is not None:
                tree.append(node)
        return tree

    def walk(self, record: StepRecord, depth: int) -> Optional[ExecutionNode]:
        # Catalog before filtering so hidden steps still document their columns
        if record.is_active:
            self._register_columns(record)

        if not is_retained(record, self.context.mode):
            logger.debug(
                f"Skipping {record.step_type} step '{record.display_name}' "
                f"in {self.context.mode.value} mode"
            )
            return None

        node = self.synthesizer.describe(record, depth)
        node.position = len(self.flow)
        self.flow.append(node)
        for child in record.children:
            child_node = self.walk(child, depth + 1)
            if child_node is not None:
                node.children.append(child_node)
        return node

    def _register_columns(self, record: StepRecord) -> None:
        columns = self.context.columns
        storage = record.storage
        if record.step_type in QUERY_TYPES:
            columns.register(
                get_list_safe(storage.get("Columns"), "ColumnItem"),
                record.display_name,
                "query",
            )
        elif record.step_type in CALCULATED_COLUMN_TYPES:
            columns.register(
                get_list_safe(storage.get("Columns"), "ColumnItemDef"),
                record.display_name,
                "calc",
            )
        elif record.step_type == "CreateTable":
            columns.register(
                get_list_safe(
                    record.output_table_definition.get("Columns"), "ColumnItem"
                ),
                record.display_name,
                "table",
            )
