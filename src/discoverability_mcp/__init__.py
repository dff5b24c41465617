"""Product discoverability analysis — MCP server for Shopify product content."""

__version__ = "0.1.0"
