"""stepgraph - execution models from vendor ETL process definitions."""

__version__ = "0.1.0"
__package_name__ = "stepgraph"

# Initialize logging with default configuration
from stepgraph.logging import configure_logging

configure_logging()

from .core import (
    ExecutionModel,
    ExecutionNode,
    Mode,
    Rule,
    build_execution_model,
    flatten_criteria,
    flatten_expression,
    parse_steps,
    summarize_flow,
)
from .errors import (
    CircularStepReferenceError,
    InputContainerError,
    StepGraphError,
    UnknownModeError,
)

__all__ = [
    "CircularStepReferenceError",
    "ExecutionModel",
    "ExecutionNode",
    "InputContainerError",
    "Mode",
    "Rule",
    "StepGraphError",
    "UnknownModeError",
    "build_execution_model",
    "flatten_criteria",
    "flatten_expression",
    "parse_steps",
    "summarize_flow",
]
