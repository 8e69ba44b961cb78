"""
better_qdrant_ops - Use-case functions for document ingestion and retrieval.

CLI commands and the MCP server delegate to these functions.

Modules:
    providers: Embedding provider selection from process config
    paths: Upload directory containment
    ingest: Chunk, embed and upsert documents
    retrieve: Similarity search and result formatting
    service: DocumentService facade returning tool-ready results
"""

from .ingest import IngestResult, ingest_file, ingest_text
from .paths import sanitize_upload_path
from .providers import resolve_provider
from .retrieve import DEFAULT_LIMIT, NO_RESULTS, format_results, retrieve
from .service import DocumentService, OperationResult

__all__ = [
    "DEFAULT_LIMIT",
    "DocumentService",
    "IngestResult",
    "NO_RESULTS",
    "OperationResult",
    "format_results",
    "ingest_file",
    "ingest_text",
    "resolve_provider",
    "retrieve",
    "sanitize_upload_path",
]
