import pytest

from tunnel_api.sse.connection import SseConnection
from tunnel_api.sse.registry import SubscriberDirectory


def _connection(tunnel_id="t1", subchannel="main") -> SseConnection:
    return SseConnection(tunnel_id=tunnel_id, subchannel=subchannel)


@pytest.mark.asyncio
async def test_snapshot_preserves_subscription_order():
    directory = SubscriberDirectory()
    first, second, third = _connection(), _connection(), _connection()
    for connection in (first, second, third):
        await directory.subscribe("t1", "main", connection)
    assert await directory.snapshot("t1", "main") == [first, second, third]


@pytest.mark.asyncio
async def test_snapshot_is_stable_copy():
    directory = SubscriberDirectory()
    first = _connection()
    await directory.subscribe("t1", "main", first)
    snapshot = await directory.snapshot("t1", "main")
    await directory.subscribe("t1", "main", _connection())
    assert snapshot == [first]


@pytest.mark.asyncio
async def test_unsubscribe_removes_exactly_one_and_is_idempotent():
    directory = SubscriberDirectory()
    keep, drop = _connection(), _connection()
    await directory.subscribe("t1", "main", keep)
    await directory.subscribe("t1", "main", drop)
    assert await directory.unsubscribe("t1", "main", drop) is True
    assert await directory.unsubscribe("t1", "main", drop) is False
    assert await directory.snapshot("t1", "main") == [keep]
    assert await directory.unsubscribe("other", "main", keep) is False


@pytest.mark.asyncio
async def test_keys_are_isolated():
    directory = SubscriberDirectory()
    await directory.subscribe("t1", "s", _connection("t1", "s"))
    assert await directory.count("t2", "s") == 0
    assert await directory.count("t1", "t") == 0
    assert await directory.count("t1", "s") == 1


@pytest.mark.asyncio
async def test_drop_tunnel_returns_all_of_its_subscribers():
    directory = SubscriberDirectory()
    a, b, other = _connection("t1", "a"), _connection("t1", "b"), _connection("t2", "a")
    await directory.subscribe("t1", "a", a)
    await directory.subscribe("t1", "b", b)
    await directory.subscribe("t2", "a", other)
    dropped = await directory.drop_tunnel("t1")
    assert set(dropped) == {a, b}
    assert await directory.total() == 1
    assert await directory.drop_tunnel("t1") == []


def test_connection_identity_is_its_id():
    first, second = _connection(), _connection()
    assert first == first
    assert first != second
    assert first != "not a connection"
    assert len({first, second, first}) == 2
