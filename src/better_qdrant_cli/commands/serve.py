"""Run the MCP stdio server."""

import asyncio
import logging

from better_qdrant_core.errors import BetterQdrantError
from better_qdrant_ops import DocumentService

from ..server import run_stdio_server
from ..util import fail, load_app_config

logger = logging.getLogger(__name__)


def serve():
    """Serve the document tools over MCP on stdin/stdout."""
    config = load_app_config()
    try:
        # The store enforces the transport policy here, before any request.
        service = DocumentService(config)
    except BetterQdrantError as e:
        raise fail("Server start", e)

    logger.info("Starting MCP server (qdrant=%s, upload_dir=%s)", config.qdrant_url, config.upload_dir)
    asyncio.run(run_stdio_server(service))
