"""Reads an already-decoded step container from disk."""

import json
import os
from typing import Any, Dict

import yaml

from stepgraph.cli.errors import InputDecodeError, InputFileNotFoundError
from stepgraph.logging import get_logger

logger = get_logger(__name__)

YAML_EXTENSIONS = (".yml", ".yaml")


def load_container(path: str) -> Dict[str, Any]:
    """Load a step container stored as JSON or YAML.

    Args:
        path: Path to a ``.json``, ``.yml`` or ``.yaml`` file

    Returns:
        The decoded document

    Raises:
        InputFileNotFoundError: If the file does not exist
        InputDecodeError: If the file cannot be decoded
    """
    if not os.path.isfile(path):
        raise InputFileNotFoundError(path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.lower().endswith(YAML_EXTENSIONS):
                document = yaml.safe_load(f)
            else:
                document = json.load(f)
    except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as e:
        raise InputDecodeError(path, str(e)) from e

    logger.debug(f"Loaded step container from {path}")
    return document
