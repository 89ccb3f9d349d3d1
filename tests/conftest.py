import asyncio
import itertools
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from tunnel_api.app import create_app
from tunnel_api.config.settings import TunnelSettings
from tunnel_api.service.tunnels import TunnelService
from tunnel_api.sse.models import SessionState


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class SequentialIds:
    def __init__(self) -> None:
        self._tunnels = itertools.count(1)
        self._secrets = itertools.count(1)

    def new_tunnel_id(self) -> str:
        return f"tunnel-{next(self._tunnels)}"

    def new_secret(self) -> str:
        return f"secret-{next(self._secrets)}"


class RecordingWriter:
    def __init__(self) -> None:
        self.frames = []
        self.flushes = 0

    async def write(self, frame: bytes) -> None:
        self.frames.append(frame)

    async def flush(self) -> None:
        self.flushes += 1


async def wait_until(predicate, *, timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.001)


async def start_session(service, tunnel_id, subchannel=None, writer=None):
    session = await service.open_session(tunnel_id, subchannel)
    writer = writer or RecordingWriter()
    cancelled = asyncio.Event()
    task = asyncio.create_task(session.run(writer, cancelled))
    await wait_until(lambda: session.state is not SessionState.INIT)
    return session, writer, cancelled, task


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ids():
    return SequentialIds()


@pytest.fixture
def settings():
    return TunnelSettings(_env_file=None)


@pytest.fixture
def service(settings, ids, clock):
    return TunnelService(settings, id_source=ids, clock=clock)


@pytest.fixture
def app(settings, service):
    return create_app(settings, service=service)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
