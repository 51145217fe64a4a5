"""Tests for loading decoded step containers from disk."""

import json
import os

import pytest

from stepgraph.cli.errors import InputDecodeError, InputFileNotFoundError
from stepgraph.cli.loader import load_container


class TestLoadContainer:
    """Test JSON and YAML input files."""

    def test_json(self, container_file, kitchen_sink_container):
        assert load_container(container_file) == kitchen_sink_container

    def test_yaml(self, temp_dir):
        path = os.path.join(temp_dir, "process.yaml")
        with open(path, "w", encoding="utf-8") as f:
            f.write("ArrayOfStep:\n  Step:\n    StepId: 1\n    StepType: Group\n")

        assert load_container(path) == {
            "ArrayOfStep": {"Step": {"StepId": 1, "StepType": "Group"}}
        }

    def test_missing_file(self, temp_dir):
        path = os.path.join(temp_dir, "missing.json")

        with pytest.raises(InputFileNotFoundError) as exc_info:
            load_container(path)

        assert exc_info.value.path == path
        assert exc_info.value.suggestions

    def test_invalid_json(self, temp_dir):
        path = os.path.join(temp_dir, "bad.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write(json.dumps({"a": 1})[:-1])

        with pytest.raises(InputDecodeError) as exc_info:
            load_container(path)

        assert exc_info.value.path == path
        assert "Could not decode" in exc_info.value.message
