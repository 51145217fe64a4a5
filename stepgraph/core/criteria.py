"""Criteria Flattener: nested filter groups to an itemized predicate list.

A criteria holder on a parameter bag may contain a criteria set
(``CriteriaSetItem``) with its own ``CriteriaValues`` and further
``NestedSets``, a flat ``CriteriaValues`` list, or a free-text criteria
string. Boolean structure between predicates and groups is not preserved:
the result is a flat list meant for human review.
"""

import re
from typing import Any, Dict, Iterable, List

from stepgraph.core.text import first_text, get_list_safe, get_path, get_text_safe

CRITERIA_HOLDER_KEYS = (
    "Criteria",
    "WarehouseCriteria",
    "SourceCriteria",
    "FilterCriteria",
)
DEFAULT_OPERATOR = "="
MISSING_VALUE = "?"


def humanize_operator(operator: str) -> str:
    """Turn an operator code such as ``GreaterThanOrEqual`` into plain words.

    Symbolic operators (``=``, ``<>``) are returned unchanged.
    """
    operator = (operator or "").strip()
    if not operator:
        return DEFAULT_OPERATOR
    return re.sub(r"(?<=[a-z0-9])([A-Z])", r" \1", operator).lower()


def describe_criteria_value(value: Dict[str, Any]) -> str:
    """Render one column/operator/value triple, ``""`` when it has no column."""
    column = first_text(value.get("ColumnId"), value.get("ColumnName"))
    if not column:
        return ""

    operator_field = value.get("Operator")
    if isinstance(operator_field, dict) and "Value" in operator_field:
        raw_operator = get_text_safe(operator_field.get("Value"))
    else:
        raw_operator = get_text_safe(operator_field)

    if raw_operator.strip().lower() == "between":
        low = get_text_safe(value.get("Value1")) or MISSING_VALUE
        high = get_text_safe(value.get("Value2")) or MISSING_VALUE
        return f"{column} {humanize_operator(raw_operator)} {low} AND {high}"

    rendered = f"{column} {humanize_operator(raw_operator)}"
    value1 = get_text_safe(value.get("Value1"))
    return f"{rendered} {value1}" if value1 else rendered


def _flatten_values(values_field: Any, results: List[str]) -> None:
    if isinstance(values_field, str):
        if values_field.strip():
            results.append(values_field.strip())
        return
    for value in get_list_safe(values_field, "CriteriaValue"):
        if isinstance(value, dict):
            predicate = describe_criteria_value(value)
            if predicate:
                results.append(predicate)


def _flatten_set(criteria_set: Any, results: List[str]) -> None:
    if not isinstance(criteria_set, dict):
        return
    # A group's own predicates come before its nested subgroups
    _flatten_values(criteria_set.get("CriteriaValues"), results)
    for nested in get_list_safe(criteria_set.get("NestedSets"), "CriteriaSetItem"):
        _flatten_set(nested, results)


def flatten_criteria_holder(holder: Any) -> List[str]:
    """Flatten a single criteria holder into predicate strings."""
    results: List[str] = []
    if isinstance(holder, str):
        if holder.strip():
            results.append(holder.strip())
        return results
    if not isinstance(holder, dict):
        return results

    if "CriteriaSetItem" in holder:
        for criteria_set in get_list_safe(holder, "CriteriaSetItem"):
            _flatten_set(criteria_set, results)
    else:
        _flatten_values(holder.get("CriteriaValues"), results)
    return results


def flatten_criteria(
    storage: Dict[str, Any], holder_keys: Iterable[str] = CRITERIA_HOLDER_KEYS
) -> List[str]:
    """Collect every predicate found under the known criteria fields.

    Args:
        storage: A step parameter bag
        holder_keys: Field names to try, in order

    Returns:
        Predicates in traversal order (depth-first, direct predicates first)
    """
    if not isinstance(storage, dict):
        return []
    results: List[str] = []
    for key in holder_keys:
        results.extend(flatten_criteria_holder(storage.get(key)))
    return results


def describe_exists_filters(storage: Dict[str, Any]) -> List[str]:
    """Render ``ExistsFilters`` as ``[NOT ]EXISTS IN <table> WHERE ...`` lines."""
    lines = []
    for item in get_list_safe(get_path(storage, "ExistsFilters"), "ExistsFilterItem"):
        if not isinstance(item, dict):
            continue
        table = get_text_safe(item.get("FilterTableName"))
        negated = get_text_safe(item.get("NotExistsFlag")).lower() == "true"
        links = " AND ".join(
            f"{get_text_safe(link.get('FieldName'))} = "
            f"{get_text_safe(link.get('ColumnName'))}"
            for link in get_list_safe(item.get("Links"), "ExistsFilterItemLink")
            if isinstance(link, dict)
        )
        lines.append(f"{'NOT ' if negated else ''}EXISTS IN {table} WHERE {links}")
    return lines
