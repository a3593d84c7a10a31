"""MCP server exposing timeline sync as tools over stdio."""
