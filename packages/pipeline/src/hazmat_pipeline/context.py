"""Per-request context assembly.

Remote resources, local documents and (optionally) search-tool results
are fetched concurrently; aggregation waits for all of them. If one fetch
fails, the others are cancelled before the error propagates.
"""

import asyncio
from typing import Awaitable, Callable, Sequence

from hazmat_common import get_logger
from hazmat_contracts import LocalDocumentRecord, SourceContext
from hazmat_knowledge import KnowledgeConnector, contexts_from_documents, merge, render
from hazmat_storage import DocumentStore

logger = get_logger(__name__)

DocumentLoader = Callable[[], Awaitable[list[LocalDocumentRecord]]]


class ContextBuilder:
    """Collect and rank the reference context for one request.

    Server configuration and local documents are re-read on every call.
    """

    def __init__(
        self,
        connector: KnowledgeConnector,
        document_loader: DocumentLoader = DocumentStore.get_all,
    ):
        self.connector = connector
        self._load_documents = document_loader

    async def gather(self, search_terms: Sequence[str] = ()) -> list[SourceContext]:
        """Fetch every source and merge them by weight.

        Args:
            search_terms: Terms for knowledge server search tools (none: skip)

        Raises:
            StorageError: If local documents can't be read
        """
        fetches = [self.connector.fetch_context_from_servers(), self._local_contexts()]
        if search_terms:
            fetches.append(self.connector.fetch_tool_context(search_terms))

        tasks = [asyncio.create_task(fetch) for fetch in fetches]
        try:
            resources, local, *tool_results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        remote = [*resources, *(tool_results[0] if tool_results else [])]

        logger.info(
            "context_gathered",
            resources=len(resources),
            tool_results=len(remote) - len(resources),
            local=len(local),
        )
        return merge(remote, local)

    async def build_block(self, search_terms: Sequence[str] = ()) -> str:
        """Rendered context block ("" when there is no context)."""
        return render(await self.gather(search_terms))

    async def _local_contexts(self) -> list[SourceContext]:
        return contexts_from_documents(await self._load_documents())
