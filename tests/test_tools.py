"""Tests for MCP tool definitions."""

from git_retime.tools import TODO_SYNTAX, TOOL_DEFINITIONS, ApplyRetimeInput, ShiftCommitsInput


class TestToolDefinitions:
    """Test tool definitions."""

    def test_tool_count(self):
        assert len(TOOL_DEFINITIONS) == 7

    def test_all_tools_have_required_fields(self):
        for tool in TOOL_DEFINITIONS:
            assert "name" in tool, f"Tool missing 'name': {tool}"
            assert "description" in tool, f"Tool {tool.get('name')} missing 'description'"
            assert "inputSchema" in tool, f"Tool {tool.get('name')} missing 'inputSchema'"

    def test_tool_names_are_unique(self):
        names = [tool["name"] for tool in TOOL_DEFINITIONS]
        assert len(names) == len(set(names)), "Duplicate tool names found"

    def test_expected_tools_exist(self):
        tool_names = {tool["name"] for tool in TOOL_DEFINITIONS}
        assert tool_names == {
            "list_commits",
            "preview_retime",
            "apply_retime",
            "shift_commits",
            "randomize_commits",
            "create_backup",
            "restore_backup",
        }

    def test_input_schemas_are_valid(self):
        for tool in TOOL_DEFINITIONS:
            schema = tool["inputSchema"]
            assert isinstance(schema, dict), f"Invalid schema for {tool['name']}"
            assert "properties" in schema, f"Schema for {tool['name']} missing properties"
            assert "repo_path" in schema["properties"]

    def test_rewriting_tools_have_dry_run(self):
        """Tools that rewrite history should have a dry_run parameter defaulting to true."""
        rewriting_tools = ["apply_retime", "shift_commits", "randomize_commits"]
        for tool in TOOL_DEFINITIONS:
            if tool["name"] in rewriting_tools:
                properties = tool["inputSchema"].get("properties", {})
                assert "dry_run" in properties, f"Tool {tool['name']} missing dry_run parameter"
                assert properties["dry_run"]["default"] is True

    def test_todo_tools_document_syntax(self):
        for tool in TOOL_DEFINITIONS:
            if tool["name"] in ("preview_retime", "apply_retime"):
                assert TODO_SYNTAX in tool["description"]

    def test_required_fields(self):
        assert set(ShiftCommitsInput.model_json_schema()["required"]) == {"repo_path", "revision", "shift"}
        assert "allow_paradox" not in ApplyRetimeInput.model_json_schema()["required"]
