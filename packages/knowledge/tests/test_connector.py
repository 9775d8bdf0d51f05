"""Tests for KnowledgeConnector."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from hazmat_contracts import KnowledgeServerConfig, SourceType
from hazmat_knowledge import (
    KnowledgeConnector,
    KnowledgeErrorKind,
    KnowledgeServerError,
    KnowledgeSessionPool,
    query_argument_name,
    select_search_tool,
)
from hazmat_storage import SettingsStore


def server(name: str, **kwargs) -> KnowledgeServerConfig:
    return KnowledgeServerConfig(name=name, url=f"http://{name}.local/sse", **kwargs)


def loader(*servers):
    return AsyncMock(return_value=list(servers))


async def stall(*args, **kwargs):
    await asyncio.Event().wait()


@pytest.mark.asyncio
class TestListAndReadResources:
    """Resource enumeration."""

    async def test_text_and_binary_content(self, fake_session):
        session = fake_session(
            resources={
                "regs://iata/dgr": ("IATA DGR", "Section 2.3 text", "text/plain"),
                "regs://iata/chart": ("Label chart", b"png", "image/png"),
            }
        )

        entries = await KnowledgeConnector.list_and_read_resources(session)

        assert [(e.name, e.text) for e in entries] == [
            ("IATA DGR", "Section 2.3 text"),
            ("Label chart", "[Binary data: image/png]"),
        ]
        assert entries[0].uri.startswith("regs://iata/dgr")

    async def test_no_resources(self, fake_session):
        assert await KnowledgeConnector.list_and_read_resources(fake_session()) == []


@pytest.mark.asyncio
class TestFetchContextFromServers:
    """Resource context across servers."""

    async def test_one_failing_server_is_skipped(self, session_factory, fake_session):
        good_a = server("alpha", weight=70)
        bad = server("broken", weight=90)
        good_b = server("beta", weight=30)
        factory = session_factory(
            sessions={
                good_a.url: fake_session(resources={"r://a": ("A", "alpha text", "text/plain")}),
                good_b.url: fake_session(resources={"r://b": ("B", "beta text", "text/plain")}),
            },
            failures={bad.url: ConnectionRefusedError()},
        )

        async with KnowledgeSessionPool(factory) as pool:
            connector = KnowledgeConnector(pool, server_loader=loader(good_a, bad, good_b))
            contexts = await connector.fetch_context_from_servers()

        assert [c.source_name for c in contexts] == ["alpha (A)", "beta (B)"]
        assert [c.weight for c in contexts] == [70, 30]
        assert all(c.source_type == SourceType.REMOTE_SERVER for c in contexts)

    async def test_binary_resource_becomes_placeholder(self, session_factory, fake_session):
        sds = server("sds-archive")
        factory = session_factory(
            sessions={
                sds.url: fake_session(
                    resources={"r://sds/1263": ("Paint SDS", b"%PDF", "application/pdf")}
                )
            }
        )

        async with KnowledgeSessionPool(factory) as pool:
            connector = KnowledgeConnector(pool, server_loader=loader(sds))
            contexts = await connector.fetch_context_from_servers()

        assert [(c.source_name, c.content) for c in contexts] == [
            ("sds-archive (Paint SDS)", "[Binary data: application/pdf]")
        ]

    async def test_stalled_server_is_skipped(self, session_factory, fake_session):
        good = server("good")
        stalled = server("stalled")
        hung_session = fake_session(resources={"r://s": ("S", "never read", "text/plain")})
        hung_session.list_resources = stall
        factory = session_factory(
            sessions={
                good.url: fake_session(resources={"r://g": ("G", "good text", "text/plain")}),
                stalled.url: hung_session,
            }
        )

        async with KnowledgeSessionPool(factory) as pool:
            connector = KnowledgeConnector(
                pool, server_loader=loader(stalled, good), fetch_timeout_ms=50
            )
            contexts = await asyncio.wait_for(connector.fetch_context_from_servers(), timeout=2)

        assert [c.source_name for c in contexts] == ["good (G)"]

    async def test_disabled_servers_not_contacted(self, session_factory):
        disabled = server("off", enabled=False)
        factory = session_factory()

        async with KnowledgeSessionPool(factory) as pool:
            connector = KnowledgeConnector(pool, server_loader=loader(disabled))
            assert await connector.fetch_context_from_servers() == []

        assert factory.opened == []

    async def test_servers_loaded_fresh_each_call(self, session_factory):
        server_loader = loader()
        async with KnowledgeSessionPool(session_factory()) as pool:
            connector = KnowledgeConnector(pool, server_loader=server_loader)
            await connector.fetch_context_from_servers()
            await connector.fetch_context_from_servers()

        assert server_loader.await_count == 2

    async def test_default_loader_reads_settings(self, test_db, session_factory, fake_session):
        regs = server("regs", weight=60)
        await SettingsStore.add_server(regs)
        factory = session_factory(
            sessions={regs.url: fake_session(resources={"r://x": ("X", "x", "text/plain")})}
        )

        async with KnowledgeSessionPool(factory) as pool:
            contexts = await KnowledgeConnector(pool).fetch_context_from_servers()

        assert [c.source_name for c in contexts] == ["regs (X)"]


@pytest.mark.asyncio
class TestFetchToolContext:
    """Search-tool context."""

    async def test_queries_search_tool(self, session_factory, fake_session, tool):
        regs = server("regs", weight=80)
        session = fake_session(
            tools=[
                tool("list_sections"),
                tool("search_regulations", {"text": {"type": "string"}}, ["text"]),
            ]
        )
        factory = session_factory(sessions={regs.url: session})

        async with KnowledgeSessionPool(factory) as pool:
            connector = KnowledgeConnector(pool, server_loader=loader(regs))
            contexts = await connector.fetch_tool_context(["UN1263", " ", "Paint", "UN1263"])

        assert session.tool_calls == [
            ("search_regulations", {"text": "UN1263"}),
            ("search_regulations", {"text": "Paint"}),
        ]
        assert [c.source_name for c in contexts] == [
            "regs (search: UN1263)",
            "regs (search: Paint)",
        ]
        assert contexts[0].content == "results for UN1263"
        assert contexts[0].weight == 80

    async def test_server_without_search_tool(self, session_factory, fake_session, tool):
        regs = server("regs")
        factory = session_factory(sessions={regs.url: fake_session(tools=[tool("get_time")])})

        async with KnowledgeSessionPool(factory) as pool:
            connector = KnowledgeConnector(pool, server_loader=loader(regs))
            assert await connector.fetch_tool_context(["UN1263"]) == []

    async def test_tool_error_results_skipped(self, session_factory, fake_session, tool):
        regs = server("regs")
        session = fake_session(
            tools=[tool("find")],
            tool_results={"UN1263": RuntimeError("index offline"), "Paint": "paint rules"},
        )
        factory = session_factory(sessions={regs.url: session})

        async with KnowledgeSessionPool(factory) as pool:
            connector = KnowledgeConnector(pool, server_loader=loader(regs))
            contexts = await connector.fetch_tool_context(["UN1263", "Paint"])

        assert [c.content for c in contexts] == ["paint rules"]

    async def test_failing_server_isolated(self, session_factory, fake_session, tool):
        good = server("good")
        bad = server("bad")
        factory = session_factory(
            sessions={good.url: fake_session(tools=[tool("lookup")])},
            failures={bad.url: TimeoutError()},
        )

        async with KnowledgeSessionPool(factory) as pool:
            connector = KnowledgeConnector(pool, server_loader=loader(bad, good))
            contexts = await connector.fetch_tool_context(["UN1993"])

        assert [c.source_name for c in contexts] == ["good (search: UN1993)"]

    async def test_stalled_tool_call_skipped(self, session_factory, fake_session, tool):
        good = server("good")
        stalled = server("stalled")
        hung_session = fake_session(tools=[tool("search")])
        hung_session.call_tool = stall
        factory = session_factory(
            sessions={
                good.url: fake_session(tools=[tool("search")]),
                stalled.url: hung_session,
            }
        )

        async with KnowledgeSessionPool(factory) as pool:
            connector = KnowledgeConnector(
                pool, server_loader=loader(stalled, good), fetch_timeout_ms=50
            )
            contexts = await asyncio.wait_for(connector.fetch_tool_context(["UN1263"]), timeout=2)

        assert [c.source_name for c in contexts] == ["good (search: UN1263)"]

    async def test_no_terms_skips_servers(self, session_factory):
        server_loader = loader(server("regs"))
        async with KnowledgeSessionPool(session_factory()) as pool:
            connector = KnowledgeConnector(pool, server_loader=server_loader)
            assert await connector.fetch_tool_context(["", "  "]) == []

        server_loader.assert_not_awaited()


class TestToolSelection:
    """Search tool and argument heuristics."""

    def test_first_matching_tool(self, tool):
        tools = [tool("describe"), tool("QueryIndex"), tool("search")]

        assert select_search_tool(tools).name == "QueryIndex"

    def test_no_match(self, tool):
        assert select_search_tool([tool("describe")]) is None

    def test_prefers_query_property(self, tool):
        t = tool("search", {"limit": {"type": "integer"}, "query": {"type": "string"}})

        assert query_argument_name(t) == "query"

    def test_required_string_property(self, tool):
        t = tool(
            "search",
            {"lang": {"type": "string"}, "q": {"type": "string"}},
            required=["q"],
        )

        assert query_argument_name(t) == "q"

    def test_first_string_property(self, tool):
        t = tool("search", {"limit": {"type": "integer"}, "term": {"type": "string"}})

        assert query_argument_name(t) == "term"

    def test_default_argument(self, tool):
        assert query_argument_name(tool("search")) == "query"


@pytest.mark.asyncio
class TestServerDeadline:
    """Per-server fetch deadline."""

    async def test_deadline_raises_timeout_error(self, session_factory):
        slow = server("slow")
        async with KnowledgeSessionPool(session_factory()) as pool:
            connector = KnowledgeConnector(pool, fetch_timeout_ms=20)
            with pytest.raises(KnowledgeServerError, match="within 20ms") as exc:
                await connector._within_deadline(slow, stall())

        assert exc.value.kind == KnowledgeErrorKind.TIMEOUT
        assert exc.value.url == slow.url
        assert exc.value.category == "knowledge"

    async def test_prompt_work_passes_through(self, session_factory):
        async def answer():
            return ["context"]

        async with KnowledgeSessionPool(session_factory()) as pool:
            connector = KnowledgeConnector(pool, fetch_timeout_ms=1000)
            assert await connector._within_deadline(server("fast"), answer()) == ["context"]
