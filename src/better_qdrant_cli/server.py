"""MCP stdio server exposing the document tools.

Tools:
- list_collections
- add_documents(filePath, collection, embeddingService?, chunkSize?, chunkOverlap?)
- search(query, collection, embeddingService?, limit?)
- delete_collection(collection)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from better_qdrant_core import __version__
from better_qdrant_core.embedding import ProviderType
from better_qdrant_core.errors import ValidationError
from better_qdrant_ops import DocumentService, OperationResult

logger = logging.getLogger(__name__)

SERVER_NAME = "better-qdrant"

_PROVIDER_PROPERTY = {
    "type": "string",
    "enum": ProviderType.values(),
    "description": "Embedding service to use (optional)",
}

TOOLS: List[Tool] = [
    Tool(
        name="list_collections",
        description="List all available Qdrant collections",
        inputSchema={"type": "object", "properties": {}, "required": []},
    ),
    Tool(
        name="add_documents",
        description="Add documents to a Qdrant collection with specified embedding service",
        inputSchema={
            "type": "object",
            "properties": {
                "filePath": {"type": "string", "description": "Path to the file to process"},
                "collection": {
                    "type": "string",
                    "description": "Name of the collection to add documents to",
                },
                "embeddingService": _PROVIDER_PROPERTY,
                "chunkSize": {"type": "number", "description": "Size of text chunks (optional)"},
                "chunkOverlap": {
                    "type": "number",
                    "description": "Overlap between chunks (optional)",
                },
            },
            "required": ["filePath", "collection"],
        },
    ),
    Tool(
        name="search",
        description="Search for similar documents in a collection",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search query"},
                "collection": {
                    "type": "string",
                    "description": "Name of the collection to search in",
                },
                "embeddingService": _PROVIDER_PROPERTY,
                "limit": {
                    "type": "number",
                    "description": "Maximum number of results to return (optional)",
                },
            },
            "required": ["query", "collection"],
        },
    ),
    Tool(
        name="delete_collection",
        description="Delete a Qdrant collection",
        inputSchema={
            "type": "object",
            "properties": {
                "collection": {
                    "type": "string",
                    "description": "Name of the collection to delete",
                },
            },
            "required": ["collection"],
        },
    ),
]

TOOL_NAMES = frozenset(tool.name for tool in TOOLS)


class ToolCallError(Exception):
    """Carries the text of a failed tool call to the MCP error result."""


def _required_str(arguments: Mapping[str, Any], key: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"'{key}' must be a non-empty string")
    return value


def _optional_str(arguments: Mapping[str, Any], key: str) -> Optional[str]:
    value = arguments.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"'{key}' must be a string")
    return value


def _optional_int(arguments: Mapping[str, Any], key: str) -> Optional[int]:
    value = arguments.get(key)
    if value is None:
        return None
    # JSON has one number type; accept 500.0 but not 500.5 or true.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"'{key}' must be a number")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"'{key}' must be a whole number")
        value = int(value)
    return value


async def handle_tool_call(
    service: DocumentService,
    name: str,
    arguments: Optional[Mapping[str, Any]],
) -> OperationResult:
    """Dispatch one tool call to ``service``.

    Bad arguments come back as an error result; an unknown tool name raises.
    """
    if name not in TOOL_NAMES:
        raise ValidationError(f"Unknown tool: {name}")
    arguments = arguments or {}

    try:
        if name == "list_collections":
            return await service.list_collections()

        if name == "add_documents":
            file_path = _required_str(arguments, "filePath")
            collection = _required_str(arguments, "collection")
            provider = _optional_str(arguments, "embeddingService")
            chunk_size = _optional_int(arguments, "chunkSize")
            chunk_overlap = _optional_int(arguments, "chunkOverlap")
            return await service.add_documents(
                file_path,
                collection,
                provider=provider,
                chunk_size=chunk_size,
                chunk_overlap=chunk_overlap,
            )

        if name == "search":
            query = _required_str(arguments, "query")
            collection = _required_str(arguments, "collection")
            provider = _optional_str(arguments, "embeddingService")
            limit = _optional_int(arguments, "limit")
            return await service.search(query, collection, provider=provider, limit=limit)

        collection = _required_str(arguments, "collection")
        return await service.delete_collection(collection)
    except ValidationError as e:
        logger.warning("Invalid arguments for %s: %s", name, e)
        return OperationResult(f"Invalid arguments for {name}: {e}", is_error=True)


def build_server(service: DocumentService) -> Server:
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> List[Tool]:
        return TOOLS

    @server.call_tool()
    async def call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
        result = await handle_tool_call(service, name, arguments)
        if result.is_error:
            # The SDK turns a raised exception into an isError result.
            raise ToolCallError(result.text)
        return [TextContent(type="text", text=result.text)]

    return server


async def run_stdio_server(service: DocumentService) -> None:
    """Serve until stdin closes, then release the store connection."""
    server = build_server(service)
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await service.aclose()
        logger.info("MCP server stopped")
