from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from channel import WebSocketChannel
from constants import WS_PATH
from logging_config import get_logger
from relay import SignalRouter

logger = get_logger(__name__)

signaling_router = APIRouter(tags=["signaling"])


@signaling_router.websocket(WS_PATH)
async def signaling_endpoint(websocket: WebSocket):
    """One signaling session per WebSocket connection.

    Frames are handed to the app's SignalRouter in arrival order. Whatever ends
    the session (close frame, socket error), the peer leaves its room before the
    connection is discarded.
    """
    relay: SignalRouter = websocket.app.state.relay
    await websocket.accept()

    channel = WebSocketChannel(websocket)
    channel.start()
    peer = relay.connect(channel)
    channel.label = peer.id

    try:
        message_count = 0
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"WebSocket closed by peer {peer.id} (code {message.get('code')})")
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            message_count += 1
            logger.debug(f"Received frame #{message_count} from peer {peer.id}")
            relay.handle_raw(peer, raw)
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for peer {peer.id}")
    except Exception as e:
        logger.error(f"WebSocket error for peer {peer.id}: {e}", exc_info=True)
    finally:
        relay.disconnect(peer)
        await channel.close()
