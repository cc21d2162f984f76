import asyncio
from typing import AsyncGenerator, Tuple

import pytest
import pytest_asyncio
from nyne_client.config import NyneConfig
from nyne_client.nyne_client import NyneClient
from nyne_server import NyneServer

API_KEY = "key-1234.abcd"
API_SECRET = "secret+5678$"
BASE_URL_TEMPLATE = "http://localhost:{}"


@pytest_asyncio.fixture
async def server(unused_tcp_port_factory) -> AsyncGenerator[Tuple[NyneServer, int], None]:
    """Start and yield a fake Nyne API on a random port."""
    port = unused_tcp_port_factory()
    server_instance = NyneServer(api_key=API_KEY, api_secret=API_SECRET)
    await server_instance.start(port=port)
    try:
        yield server_instance, port
    finally:
        await server_instance.stop()


@pytest.fixture
def config() -> NyneConfig:
    return NyneConfig(api_key=API_KEY, api_secret=API_SECRET, debug=True)


@pytest.fixture
def sleeps() -> list:
    """Delays requested by the poller, in seconds."""
    return []


@pytest.fixture
def make_client(server, config, sleeps):
    """Build clients against the fake server that record instead of sleeping."""
    _, port = server

    async def fake_sleep(seconds):
        sleeps.append(seconds)
        await asyncio.sleep(0)

    def _make(config=config, **kwargs):
        kwargs.setdefault("sleep", fake_sleep)
        return NyneClient(config, base_url=BASE_URL_TEMPLATE.format(port), **kwargs)

    return _make
