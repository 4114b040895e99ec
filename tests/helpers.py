import json


class RecordingChannel:
    """In-memory channel that keeps every payload it accepts."""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    def send(self, payload):
        if self.fail:
            return False
        self.sent.append(payload)
        return True

    def of_type(self, message_type):
        return [message for message in self.sent if message["type"] == message_type]

    def last(self):
        return self.sent[-1]


class ExplodingChannel:
    def send(self, payload):
        raise RuntimeError("socket already closed")


def send(relay, peer, message):
    relay.handle_raw(peer, json.dumps(message))


def join(relay, peer, room_id, key="", **extra):
    send(relay, peer, {"type": "join", "roomId": room_id, "roomKeyHash": key, **extra})


def assert_membership_consistent(registry, peers):
    for room_id, room in registry.rooms.items():
        assert room.members, f"room {room_id} is empty but still registered"
        for peer_id, peer in room.members.items():
            assert peer.id == peer_id
            assert peer.room_id == room_id
    for peer in peers:
        if peer.room_id is not None:
            assert registry.rooms[peer.room_id].members[peer.id] is peer
        else:
            assert all(peer.id not in room.members for room in registry.rooms.values())
