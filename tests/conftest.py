"""Pytest configuration for stepgraph tests."""

import json
import os
import tempfile
from typing import Any, Callable, Dict, Generator, List

import pytest


def _step(
    step_id: Any,
    step_type: str,
    name: str,
    parent: Any = 0,
    sequence: Any = 1,
    storage: Dict[str, Any] = None,
    **extra: Any,
) -> Dict[str, Any]:
    step = {
        "StepId": step_id,
        "ParentStepId": parent,
        "StepType": step_type,
        "Sequence": sequence,
        "Name": name,
    }
    if storage is not None:
        step["Definition"] = {"StorageObject": storage}
    step.update(extra)
    return step


@pytest.fixture
def make_step() -> Callable[..., Dict[str, Any]]:
    """Return a factory for raw step records.

    Returns
    -------
        Callable building a record from id, type, name and optional storage

    """
    return _step


@pytest.fixture
def kitchen_sink_steps() -> List[Dict[str, Any]]:
    """Return a small customer load process, deliberately out of order.

    Technical-mode order is: Set Region, Load Customers (Get Customers,
    Calc Tier, Publish Customers, Clear Staging), Notify.
    """
    return [
        _step(
            "5",
            "ImportWarehouseData",
            "Publish Customers",
            parent="1",
            sequence="3",
            storage={
                "TableName": "CustomerData",
                "OutputTableName": "DW_Customers",
                "ImportOption": "IU",
                "ColumnMapping": {
                    "TableColumnMapping": [
                        {"ColumnName": "CustomerId", "MappedValue": "[Id]"}
                    ]
                },
            },
        ),
        _step("1", "Group", "Load Customers", sequence="2"),
        _step(
            "3",
            "SetVariable",
            "Set Region",
            sequence="1",
            storage={"VariableName": "RegionCode", "VariableValue": "'NZ'"},
        ),
        _step(
            "2",
            "RunDirectQuery",
            "Get Customers",
            parent="1",
            sequence="1",
            storage={
                "TableName": "Customers",
                "OutputTableName": "CustomerData",
                "Columns": {
                    "ColumnItem": [
                        {
                            "ColumnName": "Id",
                            "ColumnSource": "CustId",
                            "ColumnDataType": "Int",
                        },
                        {"ColumnName": "Region", "ColumnSource": "Region"},
                    ]
                },
                "Criteria": {
                    "CriteriaSetItem": {
                        "CriteriaValues": {
                            "CriteriaValue": {
                                "ColumnId": "Region",
                                "Operator": {"Value": "Equals"},
                                "Value1": "@RegionCode",
                            }
                        }
                    }
                },
            },
        ),
        _step(
            "4",
            "AddColumn",
            "Calc Tier",
            parent="1",
            sequence="2",
            storage={
                "TableName": "CustomerData",
                "Columns": {
                    "ColumnItemDef": {
                        "ColumnName": "Tier",
                        "Expression": "IIF(Sales > 100, 'Gold', 'Silver')",
                        "ColumnType": "String",
                    }
                },
            },
        ),
        _step(
            "6",
            "PurgeTable",
            "Clear Staging",
            parent="1",
            sequence="4",
            storage={"TableToPurge": "Staging"},
        ),
        _step(
            "7",
            "SendEmail",
            "Notify",
            sequence="3",
            storage={
                "SubjectLine": "Customer load complete for today",
                "SendTo": "ops@example.com",
            },
            IsActive="false",
        ),
    ]


@pytest.fixture
def kitchen_sink_container(kitchen_sink_steps) -> Dict[str, Any]:
    """Return the kitchen sink steps wrapped in a decoded step container."""
    return {"ArrayOfStep": {"Step": kitchen_sink_steps}}


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create a temporary directory for tests.

    Yields
    ------
        Path to the temporary directory

    """
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield tmp_dir


@pytest.fixture
def container_file(temp_dir, kitchen_sink_container) -> str:
    """Write the kitchen sink container to a JSON file and return its path."""
    path = os.path.join(temp_dir, "customers.json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(kitchen_sink_container, f)
    return path
