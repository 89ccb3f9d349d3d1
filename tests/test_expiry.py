import asyncio

import pytest

from conftest import start_session, wait_until
from tunnel_api.config.settings import TunnelSettings
from tunnel_api.engine.expiry import ExpiryManager
from tunnel_api.errors import TunnelNotFound
from tunnel_api.service.tunnels import TunnelService
from tunnel_api.sse.models import SessionState


def _registry_empty(service) -> bool:
    return not service.registry._tunnels


@pytest.mark.asyncio
async def test_sweep_removes_expired_tunnels_and_ownership(service, clock):
    await service.create("old")
    clock.advance(minutes=3)
    await service.create("young")
    clock.advance(minutes=2)

    manager = ExpiryManager(service, interval=600)
    assert await manager.sweep() == ["old"]

    with pytest.raises(TunnelNotFound):
        await service.read("old", None)
    assert await service.ownership.has_record("old") is False
    assert await service.read("young", None) == ""


@pytest.mark.asyncio
async def test_publish_before_deadline_renews(service, clock):
    await service.create("t1")
    clock.advance(minutes=4)
    await service.publish("t1", None, "still here")
    clock.advance(minutes=4)

    assert await service.expire() == []
    assert await service.read("t1", None) == "still here"

    clock.advance(minutes=1)
    assert await service.expire() == ["t1"]


@pytest.mark.asyncio
async def test_expiry_closes_open_streams(service, clock):
    await service.create("t1")
    session, _, _, task = await start_session(service, "t1", None)
    clock.advance(minutes=5)

    assert await service.expire() == ["t1"]
    await asyncio.wait_for(task, timeout=1)
    assert session.state is SessionState.CLOSED


@pytest.mark.asyncio
async def test_expiry_disabled(ids, clock):
    settings = TunnelSettings(_env_file=None, ttl_enabled=False)
    service = TunnelService(settings, id_source=ids, clock=clock)
    await service.create("t1")
    clock.advance(days=1)
    assert await service.expire() == []
    assert await service.read("t1", None) == ""


@pytest.mark.asyncio
async def test_manager_loop_sweeps_periodically(service, clock):
    await service.create("t1")
    clock.advance(minutes=10)
    manager = ExpiryManager(service, interval=0.01)

    manager.start()
    assert manager.running
    try:
        await wait_until(lambda: _registry_empty(service), timeout=2)
    finally:
        await manager.stop()
    assert not manager.running
    assert await service.stats() == {"tunnels": 0, "subscribers": 0}


@pytest.mark.asyncio
async def test_manager_survives_failing_sweep(service, monkeypatch):
    calls = []

    async def _failing_expire(now=None):
        calls.append(now)
        raise RuntimeError("boom")

    monkeypatch.setattr(service, "expire", _failing_expire)
    manager = ExpiryManager(service, interval=0.01)
    manager.start()
    try:
        await wait_until(lambda: len(calls) >= 2, timeout=2)
    finally:
        await manager.stop()
