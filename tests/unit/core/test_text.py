"""Tests for defensive field accessors."""

import pytest

from stepgraph.core.text import (
    basename,
    first_text,
    get_list_safe,
    get_path,
    get_text_safe,
    is_truthy_flag,
    parse_int,
    truncate,
)


class TestGetTextSafe:
    """Test scalar and text node access."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, ""),
            ("", ""),
            ("abc", "abc"),
            (12, "12"),
            (1.5, "1.5"),
            ({"#text": "Orders"}, "Orders"),
            ({"#text": 7}, "7"),
            ({"a": 1}, '{"a":1}'),
        ],
    )
    def test_text(self, value, expected):
        assert get_text_safe(value) == expected


class TestGetListSafe:
    """Test list-or-singleton access."""

    def test_single_mapping_becomes_list(self):
        assert get_list_safe({"Item": {"a": 1}}, "Item") == [{"a": 1}]

    def test_list_is_returned_as_is(self):
        assert get_list_safe({"Item": [1, 2]}, "Item") == [1, 2]

    @pytest.mark.parametrize("holder", [None, "text", {}, {"Item": None}, {"Item": ""}])
    def test_missing_values_give_empty_list(self, holder):
        assert get_list_safe(holder, "Item") == []


class TestSmallHelpers:
    """Test the remaining accessors."""

    def test_get_path(self):
        holder = {"Definition": {"StorageObject": {"TableName": "T"}}}

        assert get_path(holder, "Definition", "StorageObject", "TableName") == "T"
        assert get_path(holder, "Definition", "Missing", "TableName") is None

    def test_first_text(self):
        assert first_text(None, "", {"#text": "x"}, "y") == "x"
        assert first_text(None, "") == ""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("12", 12),
            (" 7 ", 7),
            ("12abc", 12),
            ("abc", None),
            (None, None),
            (True, None),
            (3.9, 3),
        ],
    )
    def test_parse_int(self, value, expected):
        assert parse_int(value) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, True),
            (True, True),
            ("true", True),
            ("yes", True),
            (False, False),
            (0, False),
            ("false", False),
            ("FALSE", False),
            ("0", False),
        ],
    )
    def test_is_truthy_flag(self, value, expected):
        assert is_truthy_flag(value) is expected

    def test_basename_handles_both_separators(self):
        assert basename("C:\\exports\\daily\\orders.csv") == "orders.csv"
        assert basename("/var/data/orders.txt") == "orders.txt"
        assert basename("orders.txt") == "orders.txt"
        assert basename("") == ""

    def test_truncate(self):
        assert truncate("short") == "short"
        assert truncate("x" * 250) == "x" * 200 + "..."
