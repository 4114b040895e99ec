"""Wire messages exchanged over the signaling channel.

Every message is a JSON object tagged by its ``type`` field. Inbound messages are
decoded into one of the inbound models below; outbound messages are built from
the outbound models and encoded with :func:`encode_outbound`.
"""
import json
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_serializer,
)


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# Display identity

class DeviceInfo(WireModel):
    type: str = "desktop"


class DisplayIdentity(WireModel):
    display_name: str = Field(alias="displayName")
    device_name: str = Field(alias="deviceName")
    device: DeviceInfo = Field(default_factory=DeviceInfo)


class PeerInfo(WireModel):
    id: str
    rtc_supported: bool = Field(alias="rtcSupported")
    name: DisplayIdentity


# Inbound

class JoinMessage(WireModel):
    type: Literal["join"]
    room_id: str = Field("", alias="roomId")
    room_key_hash: str = Field("", alias="roomKeyHash")
    rtc_supported: bool = Field(True, alias="rtcSupported")

    @field_validator("room_id", "room_key_hash", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        # Falsy values (missing, null, 0, false) all mean "not given".
        if not value:
            return ""
        return str(value)

    @field_validator("room_id")
    @classmethod
    def _trim_room_id(cls, value: str) -> str:
        return value.strip()

    @field_validator("rtc_supported", mode="before")
    @classmethod
    def _coerce_rtc_supported(cls, value: Any) -> bool:
        # Advisory flag: only an explicit false opts out.
        return value is not False


class SignalMessage(WireModel):
    type: Literal["signal"]
    to: Optional[str] = None
    sdp: Any = None
    ice: Any = None

    @field_validator("to", mode="before")
    @classmethod
    def _coerce_target(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    def payload(self) -> Dict[str, Any]:
        """The negotiation fields the sender actually supplied, untouched."""
        return {field: getattr(self, field) for field in ("sdp", "ice") if field in self.model_fields_set}


class DisconnectMessage(WireModel):
    type: Literal["disconnect"]


class KeepaliveMessage(WireModel):
    type: Literal["keepalive-response", "pong"]


class UnknownMessage(WireModel):
    """Any well-formed object whose ``type`` is not part of the protocol."""

    type: Any = None


InboundMessage = Annotated[
    Union[JoinMessage, SignalMessage, DisconnectMessage, KeepaliveMessage],
    Field(discriminator="type"),
]

KNOWN_INBOUND_TYPES = ("join", "signal", "disconnect", "keepalive-response", "pong")

inbound_adapter = TypeAdapter(InboundMessage)


def decode_inbound(raw: Union[str, bytes]):
    """Decode one inbound frame.

    Returns the matching inbound model, an :class:`UnknownMessage` for objects with
    an unrecognised ``type``, or ``None`` when the frame is not a JSON object.
    """
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError):
        # nesting past the interpreter recursion limit counts as undecodable
        return None
    if not isinstance(data, dict):
        return None

    message_type = data.get("type")
    if not isinstance(message_type, str) or message_type not in KNOWN_INBOUND_TYPES:
        return UnknownMessage(type=message_type)

    try:
        return inbound_adapter.validate_python(data)
    except ValidationError:
        return None


# Outbound

class WelcomeMessage(WireModel):
    type: Literal["welcome"] = "welcome"
    peer_id: str = Field(alias="peerId")
    room_id: str = Field(alias="roomId")
    peers: List[PeerInfo]
    display_name: str = Field(alias="displayName")
    device_name: str = Field(alias="deviceName")


class PeerJoinedMessage(WireModel):
    type: Literal["peer-joined"] = "peer-joined"
    peer: PeerInfo


class PeerLeftMessage(WireModel):
    type: Literal["peer-left"] = "peer-left"
    peer_id: str = Field(alias="peerId")


class SignalRelayMessage(WireModel):
    type: Literal["signal"] = "signal"
    sender: str
    sdp: Any = None
    ice: Any = None

    @model_serializer(mode="wrap")
    def _omit_absent_payload(self, handler: SerializerFunctionWrapHandler) -> Dict[str, Any]:
        data = handler(self)
        for field in ("sdp", "ice"):
            if field not in self.model_fields_set:
                data.pop(field, None)
        return data


class RoomKeyMismatchMessage(WireModel):
    type: Literal["room-key-mismatch"] = "room-key-mismatch"


class ErrorMessage(WireModel):
    type: Literal["error"] = "error"
    message: str


OutboundMessage = Union[
    WelcomeMessage,
    PeerJoinedMessage,
    PeerLeftMessage,
    SignalRelayMessage,
    RoomKeyMismatchMessage,
    ErrorMessage,
]


def encode_outbound(message: OutboundMessage) -> Dict[str, Any]:
    return message.model_dump(mode="json", by_alias=True)
