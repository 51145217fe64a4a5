"""Read-only view over one raw step record."""

import re
from typing import Any, Dict, List, Optional, Union

from stepgraph.core.text import get_path, get_text_safe, is_truthy_flag, parse_int

StepId = Union[int, str]

# Decision and branch steps carry control flow and are always treated as active
FORCED_ACTIVE_TYPES = frozenset({"Decision", "Branch"})
STRUCTURAL_TYPES = frozenset({"Loop", "Group", "Decision", "Branch"})


def normalize_step_id(value: Any) -> Optional[StepId]:
    """Normalize an identifier so ``"10"`` and ``10`` resolve to the same step."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    text = get_text_safe(value).strip()
    if re.fullmatch(r"[+-]?\d+", text):
        return int(text)
    return text or None


class StepRecord:
    """Wraps a raw record without mutating it.

    Only ``children`` is mutable; it is filled in by the normalizer.
    """

    __slots__ = ("raw", "step_id", "parent_id", "children")

    def __init__(self, raw: Dict[str, Any]):
        self.raw = raw if isinstance(raw, dict) else {}
        self.step_id = normalize_step_id(self.raw.get("StepId"))
        # Parent ids share the step id normalization; 0 or absent means root
        self.parent_id = normalize_step_id(self.raw.get("ParentStepId")) or 0
        self.children: List["StepRecord"] = []

    def __repr__(self) -> str:
        return f"StepRecord(id={self.step_id!r}, type={self.step_type!r})"

    @property
    def step_type(self) -> str:
        return get_text_safe(self.raw.get("StepType"))

    @property
    def name(self) -> str:
        return get_text_safe(self.raw.get("Name"))

    @property
    def sequence(self) -> Optional[int]:
        return parse_int(self.raw.get("Sequence"))

    @property
    def sort_key(self):
        """Ascending by sequence, missing or non-numeric sequences last."""
        sequence = self.sequence
        return (sequence is None, sequence if sequence is not None else 0)

    @property
    def is_active(self) -> bool:
        if self.step_type in FORCED_ACTIVE_TYPES:
            return True
        return is_truthy_flag(self.raw.get("IsActive"))

    @property
    def is_structural(self) -> bool:
        return self.step_type in STRUCTURAL_TYPES

    @property
    def storage(self) -> Dict[str, Any]:
        """The operation-specific parameter bag, ``{}`` when absent."""
        storage = get_path(self.raw, "Definition", "StorageObject")
        return storage if isinstance(storage, dict) else {}

    @property
    def output_table_definition(self) -> Dict[str, Any]:
        definition = self.raw.get("OutputTableDefinition")
        return definition if isinstance(definition, dict) else {}

    @property
    def description(self) -> str:
        for key in ("Description", "Narration", "Comments"):
            text = get_text_safe(self.raw.get(key))
            if text:
                return text
        return ""

    @property
    def display_name(self) -> str:
        """The step name, or a synthesized label for unnamed steps."""
        return self.name or f"Step {self.step_id}"
