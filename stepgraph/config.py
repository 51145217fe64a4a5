"""File-based defaults for the command line.

A ``stepgraph.yml`` file holds the default description mode and output
format; ``STEPGRAPH_MODE`` overrides the mode. The engine itself takes only
the mode, so this layer is consulted by the CLI alone.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from stepgraph.core.modes import Mode
from stepgraph.errors import UnknownModeError
from stepgraph.logging import get_logger

logger = get_logger(__name__)

CONFIG_FILENAME = "stepgraph.yml"
MODE_ENV_VAR = "STEPGRAPH_MODE"
OUTPUT_FORMATS = ("tree", "flow", "json")


@dataclass
class StepGraphConfig:
    """CLI defaults."""

    mode: Mode = Mode.TECHNICAL
    output_format: str = "tree"
    verbose: bool = False

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "StepGraphConfig":
        """Create a config from a parsed YAML mapping.

        Raises:
            ValueError: If a value is of the wrong type or out of range
        """
        if not isinstance(config, dict):
            raise ValueError("Configuration must be a mapping")

        try:
            mode = Mode.parse(config.get("mode"))
        except UnknownModeError as e:
            raise ValueError(str(e)) from e

        output_format = str(config.get("output_format", "tree")).lower()
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"output_format must be one of {', '.join(OUTPUT_FORMATS)}, "
                f"got '{output_format}'"
            )

        verbose = config.get("verbose", False)
        if not isinstance(verbose, bool):
            raise ValueError("verbose must be true or false")

        return cls(mode=mode, output_format=output_format, verbose=verbose)


def find_config_file(start_path: Optional[str] = None) -> Optional[Path]:
    """Search for ``stepgraph.yml`` from ``start_path`` upward.

    Args:
    ----
        start_path: Directory to start from (defaults to current directory)

    Returns:
    -------
        Path to the config file, or None if not found
    """
    if start_path is None:
        start_path = os.getcwd()

    current = Path(start_path).resolve()
    for parent in [current, *current.parents]:
        candidate = parent / CONFIG_FILENAME
        if candidate.is_file():
            logger.debug(f"Found configuration at: {candidate}")
            return candidate
    return None


def load_config(path: Optional[str] = None) -> StepGraphConfig:
    """Load CLI defaults.

    Args:
        path: Explicit config file; searched for when omitted

    Returns:
        The loaded configuration, or defaults when no file exists

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValueError: If the file is not valid YAML or holds invalid values
    """
    if path is not None:
        config_path: Optional[Path] = Path(path)
        if not config_path.is_file():
            raise FileNotFoundError(f"Configuration file not found: {path}")
    else:
        config_path = find_config_file()

    data: Dict[str, Any] = {}
    if config_path is not None:
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

    env_mode = os.environ.get(MODE_ENV_VAR)
    if env_mode and isinstance(data, dict):
        data = {**data, "mode": env_mode}
        logger.debug(f"Mode overridden by {MODE_ENV_VAR}={env_mode}")

    return StepGraphConfig.from_dict(data)
