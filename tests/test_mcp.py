"""
Tests for the ghostshare MCP server.

Covers tool definitions, the call_tool dispatcher, per-tool handlers and
error handling. Calls run against an in-memory GhostShare as alice unless
a test serves another user over the same stores.
"""

import json
import re
from unittest.mock import patch

import pytest
from mcp.types import TextContent, Tool

from ghostshare.core import GhostShare
from ghostshare.errors import TokenNotFoundError
from ghostshare.mcp.server import (
    TOOLS,
    call_tool,
    get_ghostshare,
    handle_tool_error,
    list_tools,
    set_user_id,
    validate_tool_input,
)


@pytest.fixture
def served(g):
    with patch("ghostshare.mcp.server.get_ghostshare", return_value=g):
        yield g


@pytest.fixture
def serve_as(records, documents, credentials, clock):
    """Serve sessions for other users over the same stores."""
    patchers = []

    def _serve(user_id):
        session = GhostShare(
            user_id=user_id,
            records=records,
            documents=documents,
            credentials=credentials,
            now_fn=clock,
            audit=False,
        )
        patcher = patch("ghostshare.mcp.server.get_ghostshare", return_value=session)
        patcher.start()
        patchers.append(patcher)
        return session

    yield _serve
    for patcher in reversed(patchers):
        patcher.stop()


async def _call(name, arguments=None):
    result = await call_tool(name, arguments)
    assert len(result) == 1
    assert isinstance(result[0], TextContent)
    return result[0].text


def _token(text):
    return re.search(r"Token: (\S+)", text).group(1)


class TestToolDefinitions:
    @pytest.mark.asyncio
    async def test_list_tools(self):
        tools = await list_tools()
        assert all(isinstance(tool, Tool) for tool in tools)
        assert {tool.name for tool in tools} == {
            "share_check_access",
            "share_read",
            "share_search",
            "access_reset_block",
            "ghost_config_get",
            "ghost_config_update",
            "ghost_trust_set",
            "ghost_trust_remove",
            "ghost_block",
            "ghost_unblock",
            "share_publish",
            "share_retract",
            "share_revise",
            "share_confirm",
            "share_deny",
            "share_moderate",
        }

    def test_tool_definitions_have_required_fields(self):
        for tool in TOOLS:
            assert tool.description
            assert tool.inputSchema["type"] == "object"
            assert "properties" in tool.inputSchema


class TestValidateToolInput:
    def test_unknown_tool(self):
        with pytest.raises(ValueError, match="Invalid input: Unknown tool"):
            validate_tool_input("memory_load", {})

    def test_schema_violation(self):
        with pytest.raises(ValueError, match="Schema validation failed at level"):
            validate_tool_input("ghost_trust_set", {"accessor_id": "bob", "level": 1.5})

    def test_missing_required(self):
        with pytest.raises(ValueError, match="Invalid input"):
            validate_tool_input("share_check_access", {})

    def test_none_arguments(self):
        assert validate_tool_input("ghost_config_get", None) == {"format": "text"}

    def test_sanitizes_control_characters(self):
        args = validate_tool_input("share_check_access", {"record_id": "rec\x001"})
        assert args["record_id"] == "rec1"
        assert args["owner_id"] is None

    def test_check_access_ignores_accessor_argument(self):
        args = validate_tool_input("share_check_access", {"record_id": "rec1", "accessor_id": "carol"})
        assert "accessor_id" not in args

    def test_empty_config_update(self):
        with pytest.raises(ValueError, match="No configuration fields"):
            validate_tool_input("ghost_config_update", {})


class TestErrorHandling:
    def test_token_errors_are_shown(self):
        (content,) = handle_tool_error(TokenNotFoundError("abc"), "share_confirm", {})
        assert content.text == "Confirmation token not found."

    def test_value_error_not_double_prefixed(self):
        (content,) = handle_tool_error(ValueError("Invalid input: bad"), "x", {})
        assert content.text == "Invalid input: bad"

    @pytest.mark.parametrize(
        "error, text",
        [
            (PermissionError("nope"), "Access denied"),
            (LookupError("missing"), "Resource not found"),
            (ConnectionError("down"), "Service temporarily unavailable"),
            (RuntimeError("secret detail"), "Internal server error"),
        ],
    )
    def test_generic_messages(self, error, text):
        (content,) = handle_tool_error(error, "x", {"a": 1})
        assert content.text == text


class TestSessionUser:
    def test_set_user_id_clears_cache(self, tmp_path):
        set_user_id("alice")
        first = get_ghostshare()
        assert first.user_id == "alice"
        assert get_ghostshare() is first
        set_user_id("bob")
        assert get_ghostshare().user_id == "bob"
        set_user_id("default")


class TestGhostTools:
    @pytest.mark.asyncio
    async def test_config_round_trip(self, served):
        text = await _call("ghost_config_update", {"enabled": True, "enforcement_mode": "hybrid"})
        assert text == "Ghost configuration updated: enabled, enforcement_mode"
        data = json.loads(await _call("ghost_config_get", {"format": "json"}))
        assert data["enabled"] is True
        assert data["enforcement_mode"] == "hybrid"

    @pytest.mark.asyncio
    async def test_trust_and_block(self, served):
        assert "Partial Access" in await _call("ghost_trust_set", {"accessor_id": "bob", "level": 0.8})
        assert served.resolve_trust_level("alice", "bob") == 0.8
        await _call("ghost_block", {"accessor_id": "bob"})
        assert "Blocked: bob" in await _call("ghost_config_get")

    @pytest.mark.asyncio
    async def test_bool_rejected(self, served):
        text = await _call("ghost_trust_set", {"accessor_id": "bob", "level": True})
        assert text.startswith("Invalid input:")


class TestAccessTools:
    @pytest.mark.asyncio
    async def test_check_access_as_trusted_session_user(self, g, alice_note, serve_as):
        g.set_trust("alice", "bob", 0.75)
        serve_as("bob")
        text = await _call("share_check_access", {"record_id": "rec1"})
        assert text == "Access granted (trusted)."

    @pytest.mark.asyncio
    async def test_check_access_cannot_escalate_another_user(self, g, alice_note, serve_as):
        """Failed checks count against the session user, never a named accessor."""
        g.set_trust("alice", "carol", 0.25)
        serve_as("mallory")
        for _ in range(3):
            data = json.loads(
                await _call(
                    "share_check_access", {"record_id": "rec1", "accessor_id": "carol", "format": "json"}
                )
            )
            assert data == {"status": "no_permission", "owner_id": "alice", "accessor_id": "mallory"}
        assert g.escalation_status("alice", "carol", "rec1") is None
        result = g.check_access("rec1", "carol")
        assert result.status == "insufficient_trust"
        assert result.attempts_remaining == 2

    @pytest.mark.asyncio
    async def test_check_access_defaults_to_session_user(self, served, alice_note):
        data = json.loads(await _call("share_check_access", {"record_id": "rec1", "format": "json"}))
        assert data["status"] == "granted"
        assert data["level"] == "owner"

    @pytest.mark.asyncio
    async def test_escalation_reset(self, g, alice_note, serve_as):
        g.set_trust("alice", "carol", 0.25)
        serve_as("carol")
        for _ in range(3):
            await _call("share_check_access", {"record_id": "rec1"})
        assert g.escalation_status("alice", "carol", "rec1").blocked
        served = serve_as("alice")
        text = await _call(
            "access_reset_block", {"accessor_id": "carol", "record_id": "rec1", "reason": "known colleague"}
        )
        assert text == "Escalation reset for carol on rec1"
        assert not served.escalation_status("alice", "carol", "rec1").blocked

    @pytest.mark.asyncio
    async def test_reset_without_record(self, served):
        text = await _call("access_reset_block", {"accessor_id": "x", "record_id": "y", "reason": "z"})
        assert text == "Resource not found"

    @pytest.mark.asyncio
    async def test_read_own_record(self, served, alice_note):
        text = await _call("share_read", {"record_id": "rec1"})
        assert "Tier: full_access" in text
        assert "harbour" in text

    @pytest.mark.asyncio
    async def test_search_owner_records(self, served, alice_note):
        text = await _call("share_search", {"query": "harbour", "owner_id": "alice"})
        assert "1. Release planning [full_access]" in text


class TestPublicationTools:
    @pytest.mark.asyncio
    async def test_publish_confirm_search(self, served, alice_note):
        staged = await _call("share_publish", {"record_id": "rec1", "spaces": ["general"], "tags": ["launch"]})
        assert staged.startswith("Pending publish of rec1.")
        applied = await _call("share_confirm", {"token": _token(staged)})
        assert applied == "Publish of rec1 applied"

        results = json.loads(
            await _call("share_search", {"query": "harbour", "tags": ["launch"], "format": "json"})
        )
        assert [r["title"] for r in results] == ["Release planning"]

    @pytest.mark.asyncio
    async def test_deny_then_confirm(self, served, alice_note):
        staged = await _call("share_publish", {"record_id": "rec1", "groups": ["team"]})
        token = _token(staged)
        assert await _call("share_deny", {"token": token}) == "Publish request denied"
        assert "denied" in await _call("share_confirm", {"token": token})

    @pytest.mark.asyncio
    async def test_unknown_token(self, served):
        text = await _call("share_confirm", {"token": "missing"})
        assert text == "Confirmation token not found."

    @pytest.mark.asyncio
    async def test_publish_needs_location(self, served, alice_note):
        text = await _call("share_publish", {"record_id": "rec1"})
        assert text == "Invalid input: Must specify at least one space or group to publish to."

    @pytest.mark.asyncio
    async def test_moderation_denied_for_non_moderator(self, served, alice_note):
        text = await _call(
            "share_moderate", {"external_id": "whatever", "action": "approve", "group_id": "team"}
        )
        assert text == "Access denied"

    @pytest.mark.asyncio
    async def test_moderate_invalid_action(self, served):
        text = await _call("share_moderate", {"external_id": "x", "action": "delete", "group_id": "team"})
        assert text.startswith("Invalid input:")
