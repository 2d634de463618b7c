"""GitHub sub-issue management tools for MCP clients."""

__version__ = "0.1.0"
