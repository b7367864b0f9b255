"""Focused tests for MCP argument sanitization helpers."""

import math

import pytest

from ghostshare.mcp.handlers.ghost import validate_ghost_config_update
from ghostshare.mcp.handlers.publication import validate_share_moderate
from ghostshare.mcp.sanitize import (
    sanitize_array,
    sanitize_string,
    validate_bool,
    validate_enum,
    validate_number,
)


def test_sanitize_string_strips_control_characters():
    """Control characters go; newlines and tabs stay."""
    assert sanitize_string("a\x00b\x7f\nc\td", "value") == "ab\nc\td"


def test_sanitize_string_required_and_optional():
    with pytest.raises(ValueError, match="cannot be empty"):
        sanitize_string("   ", "value")
    assert sanitize_string(None, "value", required=False) == ""
    with pytest.raises(ValueError, match="must be a string"):
        sanitize_string(5, "value")


def test_sanitize_array_none_returns_empty():
    assert sanitize_array(None, "values") == []


def test_sanitize_array_limits():
    """Non-lists, too many items and overlong items are rejected; empties dropped."""
    with pytest.raises(ValueError, match="must be an array"):
        sanitize_array("not-a-list", "values")
    with pytest.raises(ValueError, match="too many items"):
        sanitize_array(["one", "two", "three"], "values", max_items=2)
    with pytest.raises(ValueError, match="too long"):
        sanitize_array(["abcd"], "items", item_max_length=3)
    assert sanitize_array(["", "valid", "a\x00b"], "items", item_max_length=5) == ["valid", "ab"]


def test_validate_enum_default_and_required():
    assert validate_enum(None, "format", ["text", "json"], "text") == "text"
    with pytest.raises(ValueError, match="is required"):
        validate_enum(None, "action", ["approve"], required=True)
    with pytest.raises(ValueError, match="must be one of"):
        validate_enum("xml", "format", ["text", "json"], "text")


@pytest.mark.parametrize("bad", [True, "0.5", math.nan, math.inf])
def test_validate_number_rejects_non_numbers(bad):
    with pytest.raises(ValueError):
        validate_number(bad, "level", 0.0, 1.0)


def test_validate_number_range_and_default():
    assert validate_number(1, "level", 0.0, 1.0) == 1.0
    assert validate_number(None, "limit", 1, 100, 10) == 10
    with pytest.raises(ValueError, match=">= 0.0"):
        validate_number(-0.1, "level", 0.0, 1.0)


def test_validate_bool():
    assert validate_bool(None, "enabled") is None
    assert validate_bool(False, "enabled") is False
    with pytest.raises(ValueError, match="must be a boolean"):
        validate_bool("true", "enabled")


def test_config_update_keeps_only_given_fields():
    assert validate_ghost_config_update({"default_known_trust": 0.5, "enabled": None}) == {
        "default_known_trust": 0.5
    }


def test_moderate_coalesces_empty_location_to_none():
    args = validate_share_moderate({"external_id": "ext", "action": "approve", "space_id": ""})
    assert args["space_id"] is None
    assert args["group_id"] is None
