"""Gentyr: credential protection for agent tool calls and MCP server launches."""

__version__ = "0.1.0"
