"""MCP server exposing ghostshare operations as tools."""
