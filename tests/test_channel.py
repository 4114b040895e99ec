import asyncio
import json

from channel import WebSocketChannel


class FakeSocket:
    def __init__(self, fail_after=None):
        self.frames = []
        self.fail_after = fail_after

    async def send_text(self, text):
        if self.fail_after is not None and len(self.frames) >= self.fail_after:
            raise RuntimeError("Cannot call send once a close message has been sent.")
        self.frames.append(text)


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


def test_frames_are_flushed_in_order():
    async def scenario():
        socket = FakeSocket()
        channel = WebSocketChannel(socket)
        channel.start()
        assert channel.send({"type": "peer-left", "peerId": "a"})
        assert channel.send({"type": "peer-left", "peerId": "b"})
        await settle()
        await channel.close()
        return socket.frames

    frames = asyncio.run(scenario())
    assert [json.loads(frame)["peerId"] for frame in frames] == ["a", "b"]


def test_closed_channel_reports_failure():
    async def scenario():
        channel = WebSocketChannel(FakeSocket())
        channel.start()
        await channel.close()
        return channel.send({"type": "room-key-mismatch"})

    assert asyncio.run(scenario()) is False


def test_socket_error_marks_channel_closed():
    async def scenario():
        socket = FakeSocket(fail_after=1)
        channel = WebSocketChannel(socket)
        channel.start()
        channel.send({"type": "error", "message": "one"})
        channel.send({"type": "error", "message": "two"})
        await settle()
        accepted = channel.send({"type": "error", "message": "three"})
        await channel.close()
        return accepted, channel.closed, socket.frames

    accepted, closed, frames = asyncio.run(scenario())
    assert accepted is False
    assert closed is True
    assert len(frames) == 1


def test_full_queue_reports_failure():
    async def scenario():
        socket = FakeSocket()
        # writer not started, so nothing drains the queue
        channel = WebSocketChannel(socket, max_queued=2)
        results = [channel.send({"type": "peer-left", "peerId": str(n)}) for n in range(3)]
        channel.start()
        await settle()
        after_drain = channel.send({"type": "peer-left", "peerId": "late"})
        await settle()
        await channel.close()
        return results, after_drain, socket.frames

    results, after_drain, frames = asyncio.run(scenario())
    assert results == [True, True, False]
    assert after_drain is True
    assert [json.loads(frame)["peerId"] for frame in frames] == ["0", "1", "late"]
