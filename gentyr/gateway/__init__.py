"""Interception points: the PreToolUse hook and the MCP server launcher."""
