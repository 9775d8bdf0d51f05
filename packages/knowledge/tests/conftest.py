"""Fixtures for knowledge server tests.

Sessions are in-memory fakes that return real ``mcp.types`` results.
"""

import asyncio
from contextlib import asynccontextmanager

import pytest
from mcp.types import (
    BlobResourceContents,
    CallToolResult,
    ListResourcesResult,
    ListToolsResult,
    ReadResourceResult,
    Resource,
    TextContent,
    TextResourceContents,
    Tool,
)


class FakeSession:
    """Minimal stand-in for mcp.ClientSession."""

    def __init__(self, resources=None, tools=None, tool_results=None):
        # resources: {uri: (name, text_or_bytes_marker, mime)}
        self.resources = resources or {}
        self.tools = tools or []
        self.tool_results = tool_results or {}
        self.tool_calls = []

    async def list_resources(self):
        return ListResourcesResult(
            resources=[
                Resource(uri=uri, name=name, mimeType=mime)
                for uri, (name, _, mime) in self.resources.items()
            ]
        )

    async def read_resource(self, uri):
        name, body, mime = self.resources[str(uri)]
        if isinstance(body, bytes):
            content = BlobResourceContents(uri=uri, mimeType=mime, blob="AAAA")
        else:
            content = TextResourceContents(uri=uri, mimeType=mime, text=body)
        return ReadResourceResult(contents=[content])

    async def list_tools(self):
        return ListToolsResult(tools=self.tools)

    async def call_tool(self, name, arguments=None):
        self.tool_calls.append((name, arguments))
        query = next(iter((arguments or {}).values()), "")
        result = self.tool_results.get(query, f"results for {query}")
        if isinstance(result, Exception):
            return CallToolResult(content=[TextContent(type="text", text=str(result))], isError=True)
        return CallToolResult(content=[TextContent(type="text", text=result)], isError=False)


def make_tool(name: str, properties: dict | None = None, required: list | None = None) -> Tool:
    schema = {"type": "object", "properties": properties or {}}
    if required:
        schema["required"] = required
    return Tool(name=name, description=f"{name} tool", inputSchema=schema)


class FakeSessionFactory:
    """Session factory recording which task enters and exits each context."""

    def __init__(self, sessions=None, failures=None, handshake_delay=0.0):
        self.sessions = sessions or {}
        self.failures = failures or {}
        self.handshake_delay = handshake_delay
        self.opened = []
        self.enter_tasks = {}
        self.exit_tasks = {}
        self.cancelled = []

    @asynccontextmanager
    async def __call__(self, url):
        self.opened.append(url)
        self.enter_tasks[url] = asyncio.current_task()
        try:
            if self.handshake_delay:
                await asyncio.sleep(self.handshake_delay)
        except asyncio.CancelledError:
            self.cancelled.append(url)
            raise
        if url in self.failures:
            raise self.failures[url]
        try:
            yield self.sessions.setdefault(url, FakeSession())
        finally:
            self.exit_tasks[url] = asyncio.current_task()


@pytest.fixture
def session_factory():
    return FakeSessionFactory


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def tool():
    return make_tool
