import asyncio
import struct

import pytest

from fake_server import FakeRconServer, config_for, wait_until
from rcon_client.core import BroadcastListener
from rcon_client.protocol import ErrorKind, RconError

pytestmark = pytest.mark.asyncio


class Harness:
    def __init__(self, config):
        self.received: asyncio.Queue = asyncio.Queue()
        self.disconnects = []
        self.errors = []
        self.options = config.runtime_options().with_changes(broadcast_handler=self.received.put_nowait)
        self.listener = BroadcastListener(
            config, lambda: self.options, on_disconnect=self.on_disconnect, on_error=self.errors.append
        )

    async def on_disconnect(self, error, expected):
        self.disconnects.append((error, expected))

    async def next_broadcast(self, timeout=1.0):
        return await asyncio.wait_for(self.received.get(), timeout)


async def test_broadcast_is_delivered():
    async with FakeRconServer() as server:
        harness = Harness(config_for(server))
        await harness.listener.start()
        [link] = await server.wait_for_links(1)

        await link.push("PlayerConnected: Bob")
        assert await harness.next_broadcast() == "PlayerConnected: Bob"
        await harness.listener.stop()


async def test_subscriptions_run_in_order_before_listening():
    async with FakeRconServer() as server:
        harness = Harness(config_for(server))
        await harness.listener.start(["listen chat", "listen kills"])
        assert server.commands == ["listen chat", "listen kills"]
        await harness.listener.stop()


async def test_subscription_failure_aborts_startup():
    async with FakeRconServer() as server:
        server.drop_on.add("listen chat")
        harness = Harness(config_for(server))
        with pytest.raises(RconError) as info:
            await harness.listener.start(["listen chat"])
        assert info.value.kind is ErrorKind.SUBSCRIPTION_ERROR
        assert info.value.__cause__.kind is ErrorKind.CONNECTION_CLOSED
        assert not harness.listener.running


async def test_auth_failure_aborts_startup():
    async with FakeRconServer(password="right") as server:
        harness = Harness(config_for(server, password="wrong"))
        with pytest.raises(RconError) as info:
            await harness.listener.start()
        assert info.value.kind is ErrorKind.AUTHENTICATION_FAILED
        assert not harness.listener.running


async def test_heartbeat_echo_is_suppressed():
    async with FakeRconServer() as server:
        config = config_for(
            server, send_heartbeat_command=True, heartbeat_interval=0.02, non_broadcast_patterns=("Alive",)
        )
        harness = Harness(config)
        await harness.listener.start()
        [link] = await server.wait_for_links(1)
        assert harness.listener.heartbeat_running

        await wait_until(lambda: ("sent", "Alive") in link.events)
        await link.push("PlayerConnected: Bob")
        assert await harness.next_broadcast() == "PlayerConnected: Bob"
        assert harness.received.empty()
        await harness.listener.stop()
        assert not harness.listener.heartbeat_running


async def test_unsuppressed_heartbeat_echo_reaches_handler():
    async with FakeRconServer() as server:
        harness = Harness(config_for(server, send_heartbeat_command=True, heartbeat_interval=0.02))
        await harness.listener.start()
        assert await harness.next_broadcast() == "Alive"
        await harness.listener.stop()


async def test_handler_errors_do_not_stop_the_loop():
    async with FakeRconServer() as server:
        harness = Harness(config_for(server))
        seen = []

        def flaky(body):
            seen.append(body)
            if body == "boom":
                raise ValueError("handler bug")

        harness.options = harness.options.with_changes(broadcast_handler=flaky)
        await harness.listener.start()
        [link] = await server.wait_for_links(1)
        await link.push("boom")
        await link.push("after")
        await wait_until(lambda: seen == ["boom", "after"])
        assert harness.listener.running
        await harness.listener.stop()


async def test_reconnects_and_resubscribes_after_drop():
    async with FakeRconServer() as server:
        harness = Harness(config_for(server, attempt_reconnect=True))
        await harness.listener.start(["listen chat"])
        [first] = await server.wait_for_links(1)

        first.drop()
        links = await server.wait_for_links(2)
        await wait_until(lambda: server.commands == ["listen chat", "listen chat"])
        await links[1].push("PlayerConnected: Alice")
        assert await harness.next_broadcast() == "PlayerConnected: Alice"
        assert harness.listener.running
        assert harness.disconnects == []
        await harness.listener.stop()


async def test_drop_without_reconnect_notifies_and_ends():
    async with FakeRconServer() as server:
        harness = Harness(config_for(server))
        await harness.listener.start()
        [link] = await server.wait_for_links(1)

        link.drop()
        await wait_until(lambda: not harness.listener.running)
        [(error, expected)] = harness.disconnects
        assert expected is False
        assert error.kind is ErrorKind.CONNECTION_CLOSED
        assert await harness.listener.stop() is False


async def test_failed_reconnect_is_reported():
    server = await FakeRconServer().start()
    harness = Harness(config_for(server, attempt_reconnect=True, max_reconnect_retries=0))
    await harness.listener.start()
    await server.wait_for_links(1)
    await server.close()

    await wait_until(lambda: not harness.listener.running)
    assert [e.kind for e in harness.errors] == [ErrorKind.DIAL_ERROR]
    assert harness.disconnects[0][1] is False


async def test_start_twice_is_a_no_op():
    async with FakeRconServer() as server:
        harness = Harness(config_for(server))
        await harness.listener.start()
        await harness.listener.start()
        assert len(server.links) == 1
        await harness.listener.stop()


async def test_malformed_frame_is_reported_and_loop_continues():
    async with FakeRconServer() as server:
        harness = Harness(config_for(server))
        await harness.listener.start()
        [link] = await server.wait_for_links(1)

        link.writer.write(struct.pack("<i", 0))
        await link.push("PlayerConnected: Bob")
        assert await harness.next_broadcast() == "PlayerConnected: Bob"
        assert [e.kind for e in harness.errors] == [ErrorKind.CONNECTION_ERROR]
        assert harness.listener.running
        await harness.listener.stop()


async def test_lasting_read_error_triggers_reconnect():
    async with FakeRconServer() as server:
        harness = Harness(config_for(server, attempt_reconnect=True))
        await harness.listener.start(["listen chat"])
        await server.wait_for_links(1)

        harness.listener._connection.reader.set_exception(TimeoutError(110, "Connection timed out"))
        links = await server.wait_for_links(2)
        await links[1].push("PlayerConnected: Alice")
        assert await harness.next_broadcast() == "PlayerConnected: Alice"
        assert harness.errors == []
        assert harness.disconnects == []
        await harness.listener.stop()


async def test_lasting_read_error_without_reconnect_ends_loop():
    async with FakeRconServer() as server:
        harness = Harness(config_for(server))
        await harness.listener.start()
        await server.wait_for_links(1)

        harness.listener._connection.reader.set_exception(TimeoutError(110, "Connection timed out"))
        await wait_until(lambda: not harness.listener.running)
        [(error, expected)] = harness.disconnects
        assert expected is False
        assert error.kind is ErrorKind.CONNECTION_CLOSED
        assert harness.errors == []
