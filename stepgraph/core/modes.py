"""Description modes controlling which steps are kept and how they are phrased."""

from enum import Enum
from typing import Optional, Union

from stepgraph.errors import UnknownModeError


class Mode(str, Enum):
    """Output profile for synthesized step descriptions."""

    BUSINESS = "business"
    TECHNICAL = "technical"

    @classmethod
    def parse(cls, value: Optional[Union[str, "Mode"]]) -> "Mode":
        """Resolve a mode from user input; absence means technical.

        Raises:
            UnknownModeError: If the value names neither mode
        """
        if value is None or value == "":
            return cls.TECHNICAL
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for mode in cls:
            if mode.value == normalized:
                return mode
        raise UnknownModeError(value, [mode.value for mode in cls])
