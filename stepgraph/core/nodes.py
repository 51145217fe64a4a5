"""Output model handed to rendering collaborators.

Nodes in ``ExecutionModel.execution_flow`` are the same objects as those in
``execution_tree``; consumers must treat both as read-only.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from stepgraph.core.expressions import Rule
from stepgraph.core.registry import OrderedNameSet, VariableEntry


@dataclass
class StepOutput:
    """The explicit product of a step."""

    kind: str
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "name": self.name}


@dataclass
class TableRow:
    """One row of a step's tabular projection.

    ``rules`` holds the flattened form of the expression cell (index 1), if
    that expression is an IIF/CASE conditional.
    """

    cells: List[str]
    rules: Optional[List[Rule]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cells": list(self.cells),
            "rules": [rule.to_dict() for rule in self.rules] if self.rules else None,
        }


@dataclass
class FieldDefinition:
    """Data dictionary entry for a field a step exposes."""

    name: str
    data_type: str
    length: str = ""
    description: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "type": self.data_type,
            "length": self.length,
            "description": self.description,
        }


@dataclass
class ExecutionNode:
    """Annotated step in the reconstructed execution model."""

    node_id: str
    step_id: Any
    raw_type: str
    name: str
    phase: str
    is_active: bool
    depth: int
    # Index of the node in ExecutionModel.execution_flow
    position: int = 0
    context: str = ""
    flow_label: str = ""
    description: str = ""
    smart_description: str = ""
    inputs: List[str] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)
    output: Optional[StepOutput] = None
    details: List[str] = field(default_factory=list)
    headers: Optional[List[str]] = None
    table_data: Optional[List[TableRow]] = None
    logic_rules: Optional[List[Rule]] = None
    data_dictionary: Optional[List[FieldDefinition]] = None
    exists_logic: Optional[List[str]] = None
    children: List["ExecutionNode"] = field(default_factory=list)

    def walk(self):
        """Yield this node and its descendants depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.node_id,
            "step_id": self.step_id,
            "type": self.raw_type,
            "name": self.name,
            "phase": self.phase,
            "is_active": self.is_active,
            "depth": self.depth,
            "position": self.position,
            "context": self.context,
            "flow_label": self.flow_label,
            "description": self.description,
            "smart_description": self.smart_description,
            "inputs": list(self.inputs),
            "outputs": list(self.outputs),
            "output": self.output.to_dict() if self.output else None,
            "details": list(self.details),
            "headers": list(self.headers) if self.headers else None,
            "table_data": (
                [row.to_dict() for row in self.table_data]
                if self.table_data is not None
                else None
            ),
            "logic_rules": (
                [rule.to_dict() for rule in self.logic_rules]
                if self.logic_rules
                else None
            ),
            "data_dictionary": (
                [entry.to_dict() for entry in self.data_dictionary]
                if self.data_dictionary
                else None
            ),
            "exists_logic": list(self.exists_logic) if self.exists_logic else None,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class ExecutionModel:
    """Everything one transformation run produces."""

    execution_tree: List[ExecutionNode]
    execution_flow: List[ExecutionNode]
    variables: List[VariableEntry]
    variable_set: OrderedNameSet
    table_set: OrderedNameSet
    step_output_set: OrderedNameSet

    def find(self, name: str) -> Optional[ExecutionNode]:
        """Return the first node in execution order with the given name."""
        for node in self.execution_flow:
            if node.name == name:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "execution_tree": [node.to_dict() for node in self.execution_tree],
            "execution_flow": [
                {"position": node.position, "id": node.node_id, "step_id": node.step_id}
                for node in self.execution_flow
            ],
            "variables": [entry.to_dict() for entry in self.variables],
            "variable_set": list(self.variable_set),
            "table_set": list(self.table_set),
            "step_output_set": list(self.step_output_set),
        }
