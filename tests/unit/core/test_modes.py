"""Tests for description mode parsing."""

import pytest

from stepgraph.core.modes import Mode
from stepgraph.errors import UnknownModeError


class TestModeParse:
    """Test Mode.parse."""

    @pytest.mark.parametrize("value", [None, ""])
    def test_absent_means_technical(self, value):
        assert Mode.parse(value) is Mode.TECHNICAL

    @pytest.mark.parametrize(
        "value", ["business", "BUSINESS", " Business ", Mode.BUSINESS]
    )
    def test_business(self, value):
        assert Mode.parse(value) is Mode.BUSINESS

    def test_unknown_mode(self):
        with pytest.raises(UnknownModeError) as exc_info:
            Mode.parse("sales")

        assert exc_info.value.allowed == ["business", "technical"]
        assert "Unknown description mode: 'sales'" in str(exc_info.value)
