"""Error hierarchy for the step graph engine.

The engine degrades gracefully on malformed fields; these errors cover the few
conditions that cannot be reconstructed into a meaningful model.
"""

from typing import Any, Dict, List, Optional


class StepGraphError(Exception):
    """Base class for all engine errors.

    Carries an optional context mapping that is rendered beneath the message.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context information."""
        formatted = self.message

        if self.context:
            context_parts = []
            for key, value in self.context.items():
                if isinstance(value, list) and len(value) > 0:
                    context_parts.append(f"{key}: {', '.join(map(str, value))}")
                elif value:
                    context_parts.append(f"{key}: {value}")

            if context_parts:
                formatted += "\n\nContext:\n  - " + "\n  - ".join(context_parts)

        return formatted


class InputContainerError(StepGraphError):
    """Raised when the step container lacks its required step list."""

    def __init__(self, message: str, available_keys: Optional[List[str]] = None):
        self.available_keys = available_keys or []
        context = {}
        if self.available_keys:
            context["available_keys"] = self.available_keys
        super().__init__(message, context)


class CircularStepReferenceError(StepGraphError):
    """Raised when parent references form a cycle.

    Steps caught in a cycle can never be reached from a root, so they would
    silently disappear from the execution tree.
    """

    def __init__(self, cycle: List[Any]):
        self.cycle = list(cycle)
        path = " -> ".join(str(step_id) for step_id in self.cycle)
        super().__init__(
            "Parent references between steps form a cycle",
            {"cycle": path},
        )


class UnknownModeError(StepGraphError):
    """Raised when a description mode other than business/technical is requested."""

    def __init__(self, value: Any, allowed: List[str]):
        self.value = value
        self.allowed = allowed
        super().__init__(
            f"Unknown description mode: {value!r}",
            {"allowed_modes": allowed},
        )
