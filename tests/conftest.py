from collections.abc import AsyncIterator

import httpx
import pytest

from hostmcp.catalog import build_registry
from hostmcp.config import ServerConfig
from hostmcp.server import MCPServer
from tests.helpers import FakeBrowserDriver


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def driver() -> FakeBrowserDriver:
    return FakeBrowserDriver()


@pytest.fixture
def config() -> ServerConfig:
    return ServerConfig(heartbeat_interval=0.05, startup_grace=0.2)


@pytest.fixture
def registry(driver, config):
    return build_registry(driver=driver, config=config, cache_stats=lambda: {"issues": 3, "total": 3})


@pytest.fixture
def server(registry, config) -> MCPServer:
    return MCPServer(registry, config=config)


@pytest.fixture
async def http_client(server) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=server.streamable_http_app())
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
