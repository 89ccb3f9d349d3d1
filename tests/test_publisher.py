import pytest

from tunnel_api.sse.connection import SseConnection
from tunnel_api.sse.publisher import EventPublisher
from tunnel_api.sse.registry import SubscriberDirectory


async def _subscribed(directory, tunnel_id="t1", subchannel="main", **kwargs) -> SseConnection:
    connection = SseConnection(tunnel_id=tunnel_id, subchannel=subchannel, **kwargs)
    await directory.subscribe(tunnel_id, subchannel, connection)
    return connection


@pytest.mark.asyncio
async def test_fanout_hands_content_to_every_subscriber():
    directory = SubscriberDirectory()
    publisher = EventPublisher(directory)
    first = await _subscribed(directory)
    second = await _subscribed(directory)

    assert await publisher.publish("t1", "main", "hello") == 2
    assert await first.next_content() == "hello"
    assert await second.next_content() == "hello"
    assert first.pending == 0 and second.pending == 0


@pytest.mark.asyncio
async def test_fanout_without_subscribers_is_noop():
    publisher = EventPublisher(SubscriberDirectory())
    assert await publisher.publish("t1", "main", "hello") == 0


@pytest.mark.asyncio
async def test_fanout_skips_closed_subscriber():
    directory = SubscriberDirectory()
    publisher = EventPublisher(directory)
    closed = await _subscribed(directory)
    live = await _subscribed(directory)
    await closed.close()

    assert await publisher.publish("t1", "main", "hello") == 1
    assert closed.pending == 0
    assert await live.next_content() == "hello"


@pytest.mark.asyncio
async def test_slow_subscriber_times_out_without_failing_publish():
    directory = SubscriberDirectory()
    publisher = EventPublisher(directory, delivery_timeout=0.01)
    stalled = await _subscribed(directory, max_queue=1)
    live = await _subscribed(directory, max_queue=8)

    assert await publisher.publish("t1", "main", "one") == 2
    assert await publisher.publish("t1", "main", "two") == 1
    assert stalled.pending == 1
    assert await live.next_content() == "one"
    assert await live.next_content() == "two"
