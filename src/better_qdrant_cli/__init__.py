"""better-qdrant command line interface and MCP stdio server."""
