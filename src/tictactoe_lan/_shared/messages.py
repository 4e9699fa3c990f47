# Area: Shared
"""
tictactoe_lan._shared.messages - Wire message schemas
=====================================================

Pydantic models for the closed set of protocol messages. Inbound frames
are untrusted: `decode_frame()` validates the envelope, the channel a
message type may travel on, and the payload schema, and raises
MessageDecodeError with every validation error it found.

Range checks on cell indexes are deliberately left to the turn
authority; the schema only guarantees the field is an int.
"""

from __future__ import annotations
import json
from typing import Any, Dict, List, Literal, Optional, Tuple, Type

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    ValidationError,
    model_validator,
)

from .protocol import MESSAGE_CHANNELS, build_envelope
from ..config import PROTOCOL_NAME
from ..errors import MessageDecodeError
from ..types import Symbol


class Payload(BaseModel):
    """Base for all payload schemas."""
    model_config = ConfigDict(extra="forbid", frozen=True)


# ══════════════════════════════════════════════════════════════
# CONTROL CHANNEL
# ══════════════════════════════════════════════════════════════

class Hello(Payload):
    protocol_id: StrictInt
    client_id: StrictInt


class Welcome(Payload):
    client_id: StrictInt


class Reject(Payload):
    reason: str = Field(max_length=200)


# ══════════════════════════════════════════════════════════════
# REPLICATION CHANNEL (host -> client facts)
# ══════════════════════════════════════════════════════════════

class Fact(Payload):
    seq: StrictInt = Field(ge=1)


class PlayerJoined(Fact):
    player_id: StrictInt
    symbol: Symbol


class CellOccupied(Fact):
    cell_index: StrictInt = Field(ge=0)
    symbol: Symbol


class GameEnded(Fact):
    outcome: Literal["win", "draw"]
    winner_id: Optional[StrictInt] = None
    symbol: Optional[Symbol] = None

    @model_validator(mode="after")
    def _win_names_symbol(self) -> "GameEnded":
        if self.outcome == "win" and self.symbol is None:
            raise ValueError("a win must name the winning symbol")
        if self.outcome == "draw" and (self.symbol is not None or self.winner_id is not None):
            raise ValueError("a draw has no winner")
        return self


# ══════════════════════════════════════════════════════════════
# EVENTS CHANNEL (client -> host requests)
# ══════════════════════════════════════════════════════════════

class PickRequest(Payload):
    player_id: StrictInt
    cell_index: StrictInt


PAYLOAD_MODELS: Dict[str, Type[Payload]] = {
    "HELLO": Hello,
    "WELCOME": Welcome,
    "REJECT": Reject,
    "PLAYER_JOINED": PlayerJoined,
    "CELL_OCCUPIED": CellOccupied,
    "GAME_ENDED": GameEnded,
    "PICK_REQUEST": PickRequest,
}

MESSAGE_TYPES = {model: name for name, model in PAYLOAD_MODELS.items()}


class Envelope(BaseModel):
    """Validated outer frame."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    protocol: str
    channel: Literal["control", "replication", "events"]
    message_type: str
    message_id: str
    timestamp: str
    sender: StrictInt
    payload: Dict[str, Any]


# ══════════════════════════════════════════════════════════════
# PUBLIC API
# ══════════════════════════════════════════════════════════════

def encode_message(payload: Payload, sender: int) -> Dict[str, Any]:
    """Wrap a payload model in an envelope dict ready for encode_frame()."""
    message_type = MESSAGE_TYPES[type(payload)]
    return build_envelope(message_type, payload.model_dump(mode="json"), sender=sender)


def _format_errors(exc: ValidationError, prefix: str = "") -> List[str]:
    errors = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        where = f"{prefix}{loc}" if loc else prefix.rstrip(".") or "<root>"
        errors.append(f"{where}: {err.get('msg', 'invalid')}")
    return errors


def decode_frame(frame: bytes) -> Tuple[Envelope, Payload]:
    """
    Parse and validate one frame.

    Parameters
    ----------
    frame : bytes
        One frame without its trailing newline.

    Returns
    -------
    (Envelope, Payload)
        The envelope and its typed payload.

    Raises
    ------
    MessageDecodeError
        If the frame is not JSON, the envelope or payload fail
        validation, the protocol tag differs, or the message type is
        sent on the wrong channel.
    """
    try:
        body = json.loads(frame.decode("utf-8"))
    except (ValueError, RecursionError) as e:
        # ValueError covers bad UTF-8, bad JSON and over-long integer literals
        raise MessageDecodeError(frame, [f"not JSON: {e}"]) from None

    try:
        envelope = Envelope.model_validate(body)
    except ValidationError as e:
        raise MessageDecodeError(frame, _format_errors(e)) from None

    errors: List[str] = []
    if envelope.protocol != PROTOCOL_NAME:
        errors.append(f"protocol: expected {PROTOCOL_NAME}, got {envelope.protocol}")

    model = PAYLOAD_MODELS.get(envelope.message_type)
    if model is None:
        errors.append(f"message_type: unknown {envelope.message_type!r}")
        raise MessageDecodeError(frame, errors)

    expected_channel = MESSAGE_CHANNELS[envelope.message_type]
    if envelope.channel != expected_channel:
        errors.append(
            f"channel: {envelope.message_type} belongs on {expected_channel}, got {envelope.channel}"
        )

    try:
        payload = model.model_validate(envelope.payload)
    except ValidationError as e:
        errors.extend(_format_errors(e, prefix="payload."))
        payload = None

    if errors or payload is None:
        raise MessageDecodeError(frame, errors)

    return envelope, payload
