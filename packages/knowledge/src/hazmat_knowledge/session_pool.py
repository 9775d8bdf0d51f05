"""Knowledge server session pool.

Sessions are keyed by server URL and reused across requests. Each session's
transport and protocol contexts are entered and exited by a dedicated owner
task, because the underlying SSE transport requires teardown to run in the
task that opened it.

There is no liveness check or invalidation: a cached session is returned as
is until ``disconnect`` or ``close``.
"""

import asyncio
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator, Callable, Optional

import httpx
from mcp import ClientSession
from mcp.client.sse import sse_client
from mcp.types import Implementation

from hazmat_common import __version__, get_logger
from hazmat_knowledge.errors import KnowledgeErrorKind, KnowledgeServerError

logger = get_logger(__name__)

DEFAULT_CONNECT_TIMEOUT_MS = 15000
# Per-request read timeout for an established session
DEFAULT_READ_TIMEOUT = timedelta(seconds=60)

SessionFactory = Callable[[str], AbstractAsyncContextManager[ClientSession]]


@asynccontextmanager
async def open_mcp_session(url: str) -> AsyncIterator[ClientSession]:
    """Open an SSE transport and an initialized MCP client session."""
    async with sse_client(url) as (read_stream, write_stream):
        async with ClientSession(
            read_stream,
            write_stream,
            read_timeout_seconds=DEFAULT_READ_TIMEOUT,
            client_info=Implementation(name="hazmat-kb", version=__version__),
        ) as session:
            await session.initialize()
            yield session


class _SessionHolder:
    """Owner task for one session's contexts."""

    def __init__(self, url: str, factory: SessionFactory):
        self.url = url
        self._factory = factory
        self._stop = asyncio.Event()
        self.connected = False
        self.ready: asyncio.Future[ClientSession] = (
            asyncio.get_running_loop().create_future()
        )
        self.task = asyncio.create_task(self._run(), name=f"knowledge-session:{url}")

    async def _run(self) -> None:
        try:
            async with self._factory(self.url) as session:
                self.connected = True
                self.ready.set_result(session)
                await self._stop.wait()
        except asyncio.CancelledError:
            if not self.ready.done():
                self.ready.cancel()
            raise
        except Exception as e:
            if not self.ready.done():
                self.ready.set_exception(e)
            else:
                logger.warning("knowledge_session_ended_with_error", url=self.url, error=str(e))
        finally:
            self.connected = False

    async def close(self) -> None:
        self._stop.set()
        if not self.ready.done():
            self.task.cancel()
        await asyncio.gather(self.task, return_exceptions=True)
        if self.ready.done() and not self.ready.cancelled():
            # Mark a handshake failure as retrieved
            self.ready.exception()


class KnowledgeSessionPool:
    """Connection pool of knowledge server sessions keyed by URL.

    Example:
        >>> async with KnowledgeSessionPool() as pool:
        ...     session = await pool.connect("http://localhost:8000/sse")
        ...     resources = await session.list_resources()
    """

    def __init__(
        self,
        session_factory: SessionFactory = open_mcp_session,
        default_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS,
    ):
        self._factory = session_factory
        self.default_timeout_ms = default_timeout_ms
        self._holders: dict[str, _SessionHolder] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def urls(self) -> list[str]:
        return list(self._holders)

    def is_connected(self, url: str) -> bool:
        return url in self._holders

    async def connect(self, url: str, timeout_ms: Optional[int] = None) -> ClientSession:
        """Get the session for ``url``, opening one if needed.

        Concurrent calls for the same URL share one handshake.

        Args:
            url: Server SSE endpoint
            timeout_ms: Handshake timeout (default: pool default)

        Returns:
            Initialized ClientSession

        Raises:
            KnowledgeServerError: If the handshake fails or times out
        """
        if timeout_ms is None:
            timeout_ms = self.default_timeout_ms
        lock = self._locks.setdefault(url, asyncio.Lock())

        async with lock:
            holder = self._holders.get(url)
            if holder is not None:
                return await holder.ready

            holder = _SessionHolder(url, self._factory)
            try:
                session = await asyncio.wait_for(
                    asyncio.shield(holder.ready), timeout=timeout_ms / 1000
                )
            except asyncio.CancelledError:
                await holder.close()
                raise
            except Exception as e:
                await holder.close()
                error = classify_connect_error(e, url, timeout_ms)
                logger.error(
                    "knowledge_connect_failed",
                    url=url,
                    kind=error.kind.value,
                    error=str(e),
                )
                raise error from e

            self._holders[url] = holder
            logger.info("knowledge_connected", url=url)
            return session

    async def disconnect(self, url: str) -> None:
        """Close and forget the session for ``url`` (no-op if absent)."""
        holder = self._holders.pop(url, None)
        if holder is not None:
            await holder.close()
            logger.info("knowledge_disconnected", url=url)

    async def close(self) -> None:
        """Close every session."""
        holders = list(self._holders.values())
        self._holders.clear()
        await asyncio.gather(*(holder.close() for holder in holders))
        if holders:
            logger.info("knowledge_pool_closed", sessions=len(holders))

    async def __aenter__(self) -> "KnowledgeSessionPool":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


def classify_connect_error(
    error: BaseException, url: str, timeout_ms: int
) -> KnowledgeServerError:
    """Map a handshake failure to a KnowledgeServerError."""
    cause = _innermost(error)

    if isinstance(cause, (TimeoutError, httpx.TimeoutException)):
        return KnowledgeServerError(
            f"Connection to {url} timed out after {timeout_ms}ms. "
            "The server is not responding.",
            kind=KnowledgeErrorKind.TIMEOUT,
            url=url,
        )

    if isinstance(cause, (httpx.TransportError, ConnectionError, OSError)):
        return KnowledgeServerError(
            f"Connection refused by {url}. Is the server running?",
            kind=KnowledgeErrorKind.CONNECTION_REFUSED,
            url=url,
        )

    return KnowledgeServerError(
        f"Failed to connect to {url}: {cause}",
        kind=KnowledgeErrorKind.OTHER,
        url=url,
    )


def _innermost(error: BaseException) -> BaseException:
    # Transport task groups wrap the real failure in exception groups
    while isinstance(error, BaseExceptionGroup) and error.exceptions:
        error = error.exceptions[0]
    return error
