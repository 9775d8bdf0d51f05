"""Hazmat KB Knowledge - external knowledge servers and context aggregation.

Provides:
- KnowledgeSessionPool: MCP sessions over SSE, keyed by URL
- KnowledgeConnector: resource and search-tool context from enabled servers
- Context aggregation: weighted merge and prompt rendering
"""

from hazmat_knowledge.aggregator import contexts_from_documents, merge, render
from hazmat_knowledge.connector import (
    DEFAULT_FETCH_TIMEOUT_MS,
    KnowledgeConnector,
    ResourceText,
    query_argument_name,
    select_search_tool,
)
from hazmat_knowledge.errors import KnowledgeErrorKind, KnowledgeServerError
from hazmat_knowledge.session_pool import (
    DEFAULT_CONNECT_TIMEOUT_MS,
    KnowledgeSessionPool,
    classify_connect_error,
    open_mcp_session,
)

__version__ = "1.0.0"

__all__ = [
    "contexts_from_documents",
    "merge",
    "render",
    "DEFAULT_FETCH_TIMEOUT_MS",
    "KnowledgeConnector",
    "ResourceText",
    "query_argument_name",
    "select_search_tool",
    "KnowledgeErrorKind",
    "KnowledgeServerError",
    "DEFAULT_CONNECT_TIMEOUT_MS",
    "KnowledgeSessionPool",
    "classify_connect_error",
    "open_mcp_session",
]
