"""External knowledge connector.

Pulls reference context from every enabled knowledge server: the text of
its resources, and the output of its search tool for specific terms. A
failing server is logged and skipped; it never affects the others.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar

from mcp import ClientSession
from mcp.types import TextContent, TextResourceContents, Tool

from hazmat_common import get_logger
from hazmat_contracts import KnowledgeServerConfig, SourceContext, SourceType
from hazmat_knowledge.errors import KnowledgeErrorKind, KnowledgeServerError
from hazmat_knowledge.session_pool import KnowledgeSessionPool
from hazmat_storage import SettingsStore

logger = get_logger(__name__)

ServerLoader = Callable[[], Awaitable[list[KnowledgeServerConfig]]]

SEARCH_TOOL_KEYWORDS = ("search", "query", "lookup", "find")
DEFAULT_QUERY_ARGUMENT = "query"
# Deadline for everything one server contributes (connect included)
DEFAULT_FETCH_TIMEOUT_MS = 60000

T = TypeVar("T")


@dataclass
class ResourceText:
    """Text read from one resource content entry."""

    name: str
    uri: str
    text: str


class KnowledgeConnector:
    """Fetch weighted context from configured knowledge servers.

    Server configuration is loaded fresh on every fetch. Each server gets
    ``fetch_timeout_ms`` to deliver its contribution; a server that stalls
    past it is skipped like any other failing server.

    Example:
        >>> async with KnowledgeSessionPool() as pool:
        ...     connector = KnowledgeConnector(pool)
        ...     contexts = await connector.fetch_context_from_servers()
    """

    def __init__(
        self,
        pool: KnowledgeSessionPool,
        server_loader: Optional[ServerLoader] = None,
        fetch_timeout_ms: int = DEFAULT_FETCH_TIMEOUT_MS,
    ):
        self.pool = pool
        self._load_servers = server_loader or SettingsStore.get_servers
        self.fetch_timeout_ms = fetch_timeout_ms

    async def enabled_servers(self) -> list[KnowledgeServerConfig]:
        return [server for server in await self._load_servers() if server.enabled]

    @staticmethod
    async def list_and_read_resources(session: ClientSession) -> list[ResourceText]:
        """Enumerate a session's resources and read each one.

        Non-text content is replaced by a ``[Binary data: <mime>]`` placeholder.
        """
        listing = await session.list_resources()
        entries = []

        for resource in listing.resources:
            result = await session.read_resource(resource.uri)
            for content in result.contents:
                if isinstance(content, TextResourceContents):
                    text = content.text
                else:
                    text = f"[Binary data: {content.mimeType}]"
                entries.append(
                    ResourceText(name=resource.name, uri=str(resource.uri), text=text)
                )

        return entries

    async def fetch_context_from_servers(self) -> list[SourceContext]:
        """Read resources from every enabled server concurrently.

        Returns:
            Contexts grouped by server in configuration order
        """
        servers = await self.enabled_servers()
        if not servers:
            return []

        results = await asyncio.gather(
            *(self._fetch_server_resources(server) for server in servers)
        )
        contexts = [ctx for server_contexts in results for ctx in server_contexts]

        logger.info(
            "knowledge_context_fetched",
            servers=len(servers),
            contexts=len(contexts),
        )
        return contexts

    async def fetch_tool_context(self, queries: Iterable[str]) -> list[SourceContext]:
        """Run each query through every enabled server's search tool.

        Blank and duplicate queries are dropped. Servers without a
        search-like tool contribute nothing.
        """
        terms = _unique_terms(queries)
        if not terms:
            return []

        servers = await self.enabled_servers()
        if not servers:
            return []

        results = await asyncio.gather(
            *(self._query_server_tool(server, terms) for server in servers)
        )
        contexts = [ctx for server_contexts in results for ctx in server_contexts]

        logger.info("knowledge_tool_context_fetched", terms=terms, contexts=len(contexts))
        return contexts

    async def _fetch_server_resources(
        self, server: KnowledgeServerConfig
    ) -> list[SourceContext]:
        async def read_server() -> list[ResourceText]:
            session = await self.pool.connect(server.url)
            return await self.list_and_read_resources(session)

        try:
            logger.debug("knowledge_fetching", server=server.name, url=server.url)
            entries = await self._within_deadline(server, read_server())
        except Exception as e:
            logger.warning(
                "knowledge_server_skipped", server=server.name, url=server.url, error=str(e)
            )
            return []

        return [
            SourceContext(
                source_name=f"{server.name} ({entry.name})",
                source_type=SourceType.REMOTE_SERVER,
                content=entry.text,
                weight=server.weight,
                uri=entry.uri,
            )
            for entry in entries
        ]

    async def _query_server_tool(
        self, server: KnowledgeServerConfig, terms: list[str]
    ) -> list[SourceContext]:
        try:
            return await self._within_deadline(server, self._run_search(server, terms))
        except Exception as e:
            logger.warning(
                "knowledge_tool_query_skipped", server=server.name, url=server.url, error=str(e)
            )
            return []

    async def _run_search(
        self, server: KnowledgeServerConfig, terms: list[str]
    ) -> list[SourceContext]:
        session = await self.pool.connect(server.url)
        tool = select_search_tool((await session.list_tools()).tools)
        if tool is None:
            logger.debug("knowledge_no_search_tool", server=server.name)
            return []

        argument = query_argument_name(tool)
        contexts = []
        for term in terms:
            result = await session.call_tool(tool.name, {argument: term})
            if result.isError:
                logger.warning(
                    "knowledge_tool_error", server=server.name, tool=tool.name, term=term
                )
                continue

            text = "\n".join(
                item.text for item in result.content if isinstance(item, TextContent)
            )
            if text.strip():
                contexts.append(
                    SourceContext(
                        source_name=f"{server.name} (search: {term})",
                        source_type=SourceType.REMOTE_SERVER,
                        content=text,
                        weight=server.weight,
                    )
                )
        return contexts

    async def _within_deadline(self, server: KnowledgeServerConfig, work: Awaitable[T]) -> T:
        """Await ``work``, giving up after ``fetch_timeout_ms``.

        Raises:
            KnowledgeServerError: With kind ``timeout`` when the deadline passes
        """
        try:
            return await asyncio.wait_for(work, timeout=self.fetch_timeout_ms / 1000)
        except TimeoutError as e:
            raise KnowledgeServerError(
                f"{server.name} did not respond within {self.fetch_timeout_ms}ms",
                kind=KnowledgeErrorKind.TIMEOUT,
                url=server.url,
            ) from e


def select_search_tool(tools: list[Tool]) -> Optional[Tool]:
    """First tool whose name looks like a search operation."""
    for tool in tools:
        name = tool.name.lower()
        if any(keyword in name for keyword in SEARCH_TOOL_KEYWORDS):
            return tool
    return None


def query_argument_name(tool: Tool) -> str:
    """Pick the argument a search tool takes its query text in.

    Prefers ``query``, then the first required string property, then the
    first string property.
    """
    schema: dict[str, Any] = tool.inputSchema or {}
    properties: dict[str, Any] = schema.get("properties") or {}

    if DEFAULT_QUERY_ARGUMENT in properties:
        return DEFAULT_QUERY_ARGUMENT

    string_props = [
        name for name, prop in properties.items()
        if isinstance(prop, dict) and prop.get("type") == "string"
    ]
    for name in schema.get("required") or []:
        if name in string_props:
            return name
    if string_props:
        return string_props[0]
    return DEFAULT_QUERY_ARGUMENT


def _unique_terms(queries: Iterable[str]) -> list[str]:
    seen = set()
    terms = []
    for query in queries:
        term = (query or "").strip()
        if term and term not in seen:
            seen.add(term)
            terms.append(term)
    return terms
