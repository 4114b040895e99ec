import uuid
from typing import Any, Dict, Optional, Protocol

from logging_config import get_logger
from names import random_identity
from schemas.messages import DisplayIdentity, OutboundMessage, PeerInfo, encode_outbound

logger = get_logger(__name__)


class Channel(Protocol):
    """Outbound sink for one client. ``send`` never raises; it reports success."""

    def send(self, payload: Dict[str, Any]) -> bool:
        ...


class PeerConnection:
    def __init__(self, channel: Channel, identity: Optional[DisplayIdentity] = None):
        self.id = str(uuid.uuid4())
        self.channel = channel
        self.room_id: Optional[str] = None
        self.room_key = ""
        self.identity = identity or random_identity()
        self.rtc_supported = True

    @property
    def joined(self):
        return self.room_id is not None

    def info(self):
        return PeerInfo(id=self.id, rtc_supported=self.rtc_supported, name=self.identity)

    def send(self, message: OutboundMessage) -> bool:
        try:
            return self.channel.send(encode_outbound(message))
        except Exception as e:
            logger.debug(f"Send to peer {self.id} raised: {e}")
            return False

    def __repr__(self):
        return f"PeerConnection(id={self.id!r}, room_id={self.room_id!r})"


class Room:
    def __init__(self, room_id: str, admission_secret: str = ""):
        self.id = room_id
        self.admission_secret = admission_secret
        # Insertion order is the roster order handed to new joiners.
        self.members: Dict[str, PeerConnection] = {}

    def admits(self, key):
        return not self.admission_secret or self.admission_secret == key

    def adopt_secret(self, key):
        """Lock an unrestricted room to the first non-empty key it sees."""
        if not self.admission_secret and key:
            self.admission_secret = key
            logger.info(f"Room {self.id} adopted an admission key")

    def add(self, peer):
        self.members[peer.id] = peer

    def discard(self, peer_id):
        return self.members.pop(peer_id, None)

    def get(self, peer_id):
        if peer_id is None:
            return None
        return self.members.get(peer_id)

    def others(self, peer_id=None):
        return [peer for member_id, peer in self.members.items() if member_id != peer_id]

    @property
    def is_empty(self):
        return not self.members

    def __len__(self):
        return len(self.members)


class RoomRegistry:
    """Owns every live room. Not thread-safe; driven from a single event loop."""

    def __init__(self):
        self.rooms: Dict[str, Room] = {}

    def get(self, room_id: Optional[str]):
        if room_id is None:
            return None
        return self.rooms.get(room_id)

    def get_or_create(self, room_id: str, presented_key: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            room = Room(room_id, admission_secret=presented_key)
            self.rooms[room_id] = room
            logger.info(f"Created room {room_id} (keyed={bool(presented_key)})")
        return room

    def remove(self, room_id: str):
        if self.rooms.pop(room_id, None) is not None:
            logger.info(f"Removed empty room {room_id}")

    @property
    def peer_count(self):
        return sum(len(room) for room in self.rooms.values())

    def __len__(self):
        return len(self.rooms)

    def __contains__(self, room_id):
        return room_id in self.rooms
