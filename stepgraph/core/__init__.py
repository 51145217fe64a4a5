"""Step graph reconstruction and expression flattening."""

from stepgraph.core.criteria import flatten_criteria
from stepgraph.core.engine import build_execution_model, parse_steps
from stepgraph.core.expressions import Rule, flatten_expression
from stepgraph.core.modes import Mode
from stepgraph.core.nodes import ExecutionModel, ExecutionNode, StepOutput, TableRow
from stepgraph.core.registry import VariableEntry
from stepgraph.core.summary import summarize_flow

__all__ = [
    "ExecutionModel",
    "ExecutionNode",
    "Mode",
    "Rule",
    "StepOutput",
    "TableRow",
    "VariableEntry",
    "build_execution_model",
    "flatten_criteria",
    "flatten_expression",
    "parse_steps",
    "summarize_flow",
]
