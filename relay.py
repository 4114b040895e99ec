"""Signal routing: the protocol state machine driven by inbound messages.

Each handler runs to completion without awaiting, so room state is only ever
touched by one message at a time on the event loop and needs no locking.
"""
from typing import Optional, Union

from logging_config import get_logger
from registry import Channel, PeerConnection, RoomRegistry
from schemas.messages import (
    DisconnectMessage,
    DisplayIdentity,
    ErrorMessage,
    JoinMessage,
    PeerJoinedMessage,
    PeerLeftMessage,
    RoomKeyMismatchMessage,
    SignalMessage,
    SignalRelayMessage,
    WelcomeMessage,
    decode_inbound,
)

logger = get_logger(__name__)

INVALID_MESSAGE_TEXT = "Invalid JSON message"


class SignalRouter:
    def __init__(self, registry: Optional[RoomRegistry] = None):
        self.registry = registry if registry is not None else RoomRegistry()

    def connect(self, channel: Channel, identity: Optional[DisplayIdentity] = None) -> PeerConnection:
        peer = PeerConnection(channel, identity=identity)
        logger.info(f"Peer {peer.id} connected as {peer.identity.display_name}")
        return peer

    def handle_raw(self, peer: PeerConnection, raw: Union[str, bytes]):
        """Decode one inbound frame and dispatch it."""
        message = decode_inbound(raw)
        if message is None:
            logger.debug(f"Malformed frame from peer {peer.id}")
            self._send(peer, ErrorMessage(message=INVALID_MESSAGE_TEXT))
            return
        self.dispatch(peer, message)

    def dispatch(self, peer, message):
        if isinstance(message, JoinMessage):
            self.join(peer, message)
        elif isinstance(message, SignalMessage):
            self.relay_signal(peer, message)
        elif isinstance(message, DisconnectMessage):
            self.leave(peer)
        else:
            # keepalive responses and unknown types are accepted and ignored
            logger.debug(f"Ignoring {message.type!r} message from peer {peer.id}")

    def join(self, peer: PeerConnection, message: JoinMessage):
        room_id = message.room_id
        if not room_id:
            logger.debug(f"Dropping join without room id from peer {peer.id}")
            return

        key = message.room_key_hash
        room = self.registry.get_or_create(room_id, key)
        if not room.admits(key):
            logger.warning(f"Peer {peer.id} rejected from room {room_id}: room key mismatch")
            self._send(peer, RoomKeyMismatchMessage())
            return

        if peer.room_id is not None and peer.room_id != room_id:
            self.leave(peer)

        room.adopt_secret(key)
        peer.room_id = room_id
        peer.room_key = key
        peer.rtc_supported = message.rtc_supported
        room.add(peer)
        logger.info(f"Peer {peer.id} joined room {room_id} ({len(room)} members)")

        self._send(peer, WelcomeMessage(
            peer_id=peer.id,
            room_id=room_id,
            peers=[other.info() for other in room.others(peer.id)],
            display_name=peer.identity.display_name,
            device_name=peer.identity.device_name,
        ))
        self._broadcast(room, PeerJoinedMessage(peer=peer.info()), exclude_id=peer.id)

    def relay_signal(self, peer: PeerConnection, message: SignalMessage):
        # Misses are dropped without a reply so room membership cannot be probed.
        room = self.registry.get(peer.room_id)
        if room is None:
            logger.debug(f"Dropping signal from unjoined peer {peer.id}")
            return
        target = room.get(message.to)
        if target is None:
            logger.debug(f"Dropping signal from peer {peer.id}: no target {message.to!r} in room {room.id}")
            return
        self._send(target, SignalRelayMessage(sender=peer.id, **message.payload()))

    def leave(self, peer: PeerConnection):
        """Take the peer out of its room. Safe to call any number of times."""
        if not peer.joined:
            return
        room_id = peer.room_id
        room = self.registry.get(room_id)
        peer.room_id = None
        if room is None:
            return

        room.discard(peer.id)
        logger.info(f"Peer {peer.id} left room {room_id} ({len(room)} members remain)")
        self._broadcast(room, PeerLeftMessage(peer_id=peer.id), exclude_id=peer.id)
        if room.is_empty:
            self.registry.remove(room_id)

    def disconnect(self, peer: PeerConnection):
        """Transport-level close or error."""
        self.leave(peer)
        logger.info(f"Peer {peer.id} disconnected")

    def _send(self, peer, message):
        delivered = peer.send(message)
        if not delivered:
            logger.debug(f"Delivery of {message.type!r} to peer {peer.id} failed")
        return delivered

    def _broadcast(self, room, message, exclude_id=None):
        for member in room.others(exclude_id):
            self._send(member, message)
