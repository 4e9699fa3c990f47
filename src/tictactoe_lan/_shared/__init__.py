# Area: Shared
"""
Shared utilities used by the session layer.

This package contains:
- Logging configuration
- Protocol helpers for envelopes and framing
- Pydantic wire messages
- Replication log and client mirror
- Game transport (TCP) and discovery (UDP)
"""

from .logging_config import setup_logging, log_structured_error
from .logging_formatters import (
    enable_console_mode,
    disable_console_mode,
    is_console_mode_enabled,
)
from .protocol import (
    build_envelope,
    encode_frame,
    split_frames,
    generate_message_id,
    current_timestamp,
)
from .messages import decode_frame, encode_message
from .replication import ReplicaMirror, ReplicationLog
from .transport import ClientTransport, HostTransport, TransportEvent, TransportEventKind
from .discovery import DiscoveryRequester, DiscoveryResponder
from .protocol_logger import get_protocol_logger, ProtocolLogger

__all__ = [
    "setup_logging",
    "log_structured_error",
    "enable_console_mode",
    "disable_console_mode",
    "is_console_mode_enabled",
    "build_envelope",
    "encode_frame",
    "split_frames",
    "generate_message_id",
    "current_timestamp",
    "decode_frame",
    "encode_message",
    "ReplicaMirror",
    "ReplicationLog",
    "ClientTransport",
    "HostTransport",
    "TransportEvent",
    "TransportEventKind",
    "DiscoveryRequester",
    "DiscoveryResponder",
    "get_protocol_logger",
    "ProtocolLogger",
]
