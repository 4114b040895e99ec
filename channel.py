import asyncio
import json
from typing import Any, Dict

from fastapi import WebSocket

from constants import OUTBOUND_QUEUE_SIZE
from logging_config import get_logger

logger = get_logger(__name__)


class WebSocketChannel:
    """Fire-and-forget outbound channel over a FastAPI WebSocket.

    ``send`` only enqueues the encoded frame; a background writer task flushes
    the queue to the socket. Once the socket fails or the channel is closed,
    every further ``send`` reports failure, as does a send that finds the
    queue full because the client is not reading.
    """

    def __init__(self, websocket: WebSocket, label="", max_queued=OUTBOUND_QUEUE_SIZE):
        self.websocket = websocket
        self.label = label
        self.closed = False
        self._queue = asyncio.Queue(maxsize=max_queued)
        self._writer = None

    def start(self):
        if self._writer is None:
            self._writer = asyncio.create_task(self._drain())

    def send(self, payload: Dict[str, Any]) -> bool:
        if self.closed:
            return False
        try:
            self._queue.put_nowait(json.dumps(payload))
        except asyncio.QueueFull:
            logger.debug(f"Outbound queue full for channel {self.label}, dropping frame")
            return False
        return True

    async def _drain(self):
        try:
            while True:
                text = await self._queue.get()
                await self.websocket.send_text(text)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.closed = True
            logger.debug(f"Writer for channel {self.label} stopped: {e}")

    async def close(self):
        self.closed = True
        if self._writer is None:
            return
        self._writer.cancel()
        try:
            await self._writer
        except asyncio.CancelledError:
            pass
        self._writer = None
