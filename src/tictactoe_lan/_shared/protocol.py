# Area: Shared
"""
tictactoe_lan._shared.protocol - Envelope building and framing
==============================================================

Every frame on the game transport is one JSON envelope followed by a
newline:

    {"protocol": "tictactoe.v1", "channel": "replication",
     "message_type": "CELL_OCCUPIED", "message_id": "...",
     "timestamp": "...", "sender": 0, "payload": {...}}

Channels:
    control      HELLO / WELCOME / REJECT handshake
    replication  host -> client facts, in host order
    events       client -> host pick requests
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ..config import PROTOCOL_NAME

CHANNEL_CONTROL = "control"
CHANNEL_REPLICATION = "replication"
CHANNEL_EVENTS = "events"

# Message type -> channel it travels on
MESSAGE_CHANNELS = {
    "HELLO": CHANNEL_CONTROL,
    "WELCOME": CHANNEL_CONTROL,
    "REJECT": CHANNEL_CONTROL,
    "PLAYER_JOINED": CHANNEL_REPLICATION,
    "CELL_OCCUPIED": CHANNEL_REPLICATION,
    "GAME_ENDED": CHANNEL_REPLICATION,
    "PICK_REQUEST": CHANNEL_EVENTS,
}

FRAME_DELIMITER = b"\n"

# Longest frame accepted from a peer
MAX_FRAME_BYTES = 64 * 1024


def generate_message_id() -> str:
    """Generate unique message ID."""
    return str(uuid.uuid4())


def current_timestamp() -> str:
    """Generate ISO 8601 timestamp with timezone."""
    return datetime.now(timezone.utc).isoformat()


def build_envelope(
    message_type: str,
    payload: Dict[str, Any],
    sender: int,
    message_id: Optional[str] = None,
    protocol: str = PROTOCOL_NAME,
) -> Dict[str, Any]:
    """Build a protocol envelope.

    Args:
        message_type: One of MESSAGE_CHANNELS
        payload: Message-specific payload data
        sender: Player identity of the sending process
        message_id: Message ID (auto-generated if not provided)
        protocol: Protocol tag

    Returns:
        Complete envelope dict

    Raises:
        KeyError: For an unknown message type
    """
    if message_id is None:
        message_id = generate_message_id()

    return {
        "protocol": protocol,
        "channel": MESSAGE_CHANNELS[message_type],
        "message_type": message_type,
        "message_id": message_id,
        "timestamp": current_timestamp(),
        "sender": sender,
        "payload": payload,
    }


def encode_frame(envelope: Dict[str, Any]) -> bytes:
    """Serialize an envelope to one newline-terminated frame."""
    return json.dumps(envelope, separators=(",", ":"), sort_keys=True).encode("utf-8") + FRAME_DELIMITER


def split_frames(buffer: bytes) -> Tuple[List[bytes], bytes, bool]:
    """
    Split a receive buffer into complete frames.

    Returns:
        (frames, remainder, overflow) where overflow is True when the
        unterminated remainder already exceeds MAX_FRAME_BYTES, or a
        complete frame did
    """
    frames: List[bytes] = []
    overflow = False
    while True:
        end = buffer.find(FRAME_DELIMITER)
        if end < 0:
            break
        frame, buffer = buffer[:end], buffer[end + 1:]
        if len(frame) > MAX_FRAME_BYTES:
            overflow = True
            continue
        if frame.strip():
            frames.append(frame)
    if len(buffer) > MAX_FRAME_BYTES:
        overflow = True
    return frames, buffer, overflow
