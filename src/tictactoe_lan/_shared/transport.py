# Area: Shared
"""
tictactoe_lan._shared.transport - Game transport over TCP
=========================================================

Reliable, ordered, non-blocking connection between the host and at most
one remote client. Sockets are polled once per tick and never block;
"would block" is the normal idle result.

Handshake:
    client -> HELLO {protocol_id, client_id}
    host   -> WELCOME {client_id}   or   REJECT {reason} and close

The host refuses a mismatched protocol id, the reserved host identity
and any second client while its slot is taken. Everything a peer sends
is decoded with `decode_frame()`; invalid frames are logged and dropped,
an oversized frame drops the peer. Peer loss surfaces as a
DISCONNECTED event, never as an exception.
"""

from __future__ import annotations
import errno
import logging
import os
import select
import socket
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .messages import Envelope, Hello, Payload, Reject, Welcome, decode_frame, encode_message
from .protocol import encode_frame, split_frames
from .protocol_logger import get_protocol_logger
from ..config import PROTOCOL_ID
from ..errors import MessageDecodeError, TransportError
from ..types import HOST_PLAYER_ID

logger = logging.getLogger("tictactoe_lan.transport")

# Seconds a peer may take to complete the handshake
HANDSHAKE_TIMEOUT = 5.0

# Upper bound on recv() calls per connection per tick
MAX_READS_PER_POLL = 64

RECV_BUFFER = 4096

_CONNECT_IN_PROGRESS = {0, errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EALREADY, 10035}


class TransportEventKind(Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    REJECTED = "rejected"
    MESSAGE = "message"


@dataclass
class TransportEvent:
    """Something the transport observed during one poll."""
    kind: TransportEventKind
    peer_id: Optional[int] = None
    envelope: Optional[Envelope] = None
    payload: Optional[Payload] = None
    reason: str = ""


class _Connection:
    """One non-blocking stream socket with frame buffers."""

    def __init__(self, sock: socket.socket, address: Tuple[str, int]):
        self.sock = sock
        self.address = address
        self.peer_id: Optional[int] = None
        self.opened_at = time.monotonic()
        self._inbox = b""
        self._outbox = bytearray()
        self.closed = False

    def queue(self, envelope: dict) -> None:
        self._outbox += encode_frame(envelope)

    def flush(self) -> bool:
        """Send as much of the outbox as the socket takes. False if the peer is gone."""
        while self._outbox and not self.closed:
            try:
                sent = self.sock.send(self._outbox)
            except (BlockingIOError, InterruptedError):
                return True
            except OSError as e:
                logger.warning(f"send to {self.address[0]}:{self.address[1]} failed: {e}")
                return False
            del self._outbox[:sent]
        return not self.closed

    def receive(self) -> Tuple[List[bytes], bool]:
        """
        Read what is available.

        Returns:
            (frames, alive); alive is False once the peer closed, reset
            the connection or sent an oversized frame
        """
        alive = True
        for _ in range(MAX_READS_PER_POLL):
            try:
                chunk = self.sock.recv(RECV_BUFFER)
            except (BlockingIOError, InterruptedError):
                break
            except OSError as e:
                logger.info(f"connection {self.address[0]}:{self.address[1]} lost: {e}")
                alive = False
                break
            if not chunk:
                alive = False
                break
            self._inbox += chunk

        frames, self._inbox, overflow = split_frames(self._inbox)
        if overflow:
            logger.warning(f"oversized frame from {self.address[0]}:{self.address[1]}, dropping peer")
            alive = False
        return frames, alive

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self.sock.close()
        except OSError:
            pass


def _decode(frame: bytes, origin: str) -> Optional[Tuple[Envelope, Payload]]:
    try:
        return decode_frame(frame)
    except MessageDecodeError as e:
        logger.warning(f"dropping invalid frame from {origin}: {e.validation_errors}")
        logger.debug(e.format_error_log())
        get_protocol_logger().log_error(f"dropped invalid frame from {origin}")
        return None


# ══════════════════════════════════════════════════════════════
# HOST
# ══════════════════════════════════════════════════════════════

class HostTransport:
    """
    Listening side of the game transport.

    Usage:
        transport = HostTransport("0.0.0.0", GAME_PORT)
        transport.start()
        for event in transport.poll(): ...
        transport.broadcast(CellOccupied(...))
        transport.close()
    """

    def __init__(
        self,
        listen_address: str,
        port: int,
        protocol_id: int = PROTOCOL_ID,
        max_clients: int = 1,
    ):
        self.listen_address = listen_address
        self.requested_port = port
        self.protocol_id = protocol_id
        self.max_clients = max_clients
        self.accepting = True
        self._listener: Optional[socket.socket] = None
        self._pending: List[_Connection] = []
        self._clients: Dict[int, _Connection] = {}

    def start(self) -> None:
        """
        Bind and listen.

        Raises:
            TransportError: If the port cannot be bound
        """
        address = (self.listen_address, self.requested_port)
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.bind(address)
            listener.listen(4)
            listener.setblocking(False)
        except OSError as e:
            listener.close()
            raise TransportError("bind", address, e) from e
        self._listener = listener
        logger.info(f"listening for connections at {self.listen_address}:{self.port}")

    @property
    def port(self) -> int:
        if self._listener is None:
            return self.requested_port
        return self._listener.getsockname()[1]

    @property
    def is_running(self) -> bool:
        return self._listener is not None

    @property
    def connected_peers(self) -> List[int]:
        return list(self._clients)

    def poll(self) -> List[TransportEvent]:
        """Accept, handshake, read and flush. Never blocks."""
        events: List[TransportEvent] = []
        if self._listener is None:
            return events

        self._accept()
        events.extend(self._poll_handshakes())
        events.extend(self._poll_clients())
        return events

    def _accept(self) -> None:
        while True:
            try:
                sock, address = self._listener.accept()
            except (BlockingIOError, InterruptedError):
                return
            except OSError as e:
                logger.warning(f"accept failed: {e}")
                return
            sock.setblocking(False)
            logger.debug(f"incoming connection from {address[0]}:{address[1]}")
            self._pending.append(_Connection(sock, address))

    def _poll_handshakes(self) -> List[TransportEvent]:
        events: List[TransportEvent] = []
        still_pending: List[_Connection] = []
        now = time.monotonic()

        for conn in self._pending:
            frames, alive = conn.receive()
            origin = f"{conn.address[0]}:{conn.address[1]}"
            if frames:
                decoded = _decode(frames[0], origin)
                hello = decoded[1] if decoded else None
                if not isinstance(hello, Hello):
                    logger.warning(f"{origin} did not start with HELLO, closing")
                    conn.close()
                    continue
                reason = self._check_hello(hello)
                if reason:
                    logger.info(f"rejecting {origin}: {reason}")
                    conn.queue(encode_message(Reject(reason=reason), sender=HOST_PLAYER_ID))
                    conn.flush()
                    conn.close()
                    continue
                conn.peer_id = hello.client_id
                conn.queue(encode_message(Welcome(client_id=hello.client_id), sender=HOST_PLAYER_ID))
                self._clients[hello.client_id] = conn
                logger.info(f"client connected: {hello.client_id} from {origin}")
                events.append(TransportEvent(TransportEventKind.CONNECTED, peer_id=hello.client_id))
                events.extend(self._messages(conn, frames[1:]))
                continue
            if not alive:
                conn.close()
                continue
            if now - conn.opened_at > HANDSHAKE_TIMEOUT:
                logger.info(f"handshake timeout for {origin}")
                conn.close()
                continue
            still_pending.append(conn)

        self._pending = still_pending
        return events

    def _check_hello(self, hello: Hello) -> str:
        if hello.protocol_id != self.protocol_id:
            return f"protocol id mismatch ({hello.protocol_id} != {self.protocol_id})"
        if hello.client_id == HOST_PLAYER_ID:
            return "reserved client id"
        if hello.client_id in self._clients:
            return "client id already connected"
        if not self.accepting or len(self._clients) >= self.max_clients:
            return "server full"
        return ""

    def _messages(self, conn: _Connection, frames: List[bytes]) -> List[TransportEvent]:
        events = []
        origin = f"client {conn.peer_id}"
        for frame in frames:
            decoded = _decode(frame, origin)
            if decoded is None:
                continue
            envelope, payload = decoded
            if envelope.channel == "control":
                logger.debug(f"ignoring control message {envelope.message_type} from {origin}")
                continue
            events.append(TransportEvent(TransportEventKind.MESSAGE, peer_id=conn.peer_id,
                                         envelope=envelope, payload=payload))
        return events

    def _poll_clients(self) -> List[TransportEvent]:
        events: List[TransportEvent] = []
        for peer_id, conn in list(self._clients.items()):
            frames, alive = conn.receive()
            events.extend(self._messages(conn, frames))
            if alive:
                alive = conn.flush()
            if not alive:
                conn.close()
                del self._clients[peer_id]
                logger.info(f"client disconnected: {peer_id}")
                events.append(TransportEvent(TransportEventKind.DISCONNECTED, peer_id=peer_id,
                                             reason="connection closed"))
        return events

    def broadcast(self, payload: Payload) -> int:
        """Queue a payload to every connected client. Returns the recipient count."""
        envelope = encode_message(payload, sender=HOST_PLAYER_ID)
        for conn in self._clients.values():
            conn.queue(envelope)
        return len(self._clients)

    def flush(self) -> None:
        for conn in self._clients.values():
            conn.flush()

    def close(self) -> None:
        """Disconnect everyone and release the listening socket."""
        for conn in list(self._clients.values()) + self._pending:
            conn.flush()
            conn.close()
        self._clients.clear()
        self._pending.clear()
        if self._listener is not None:
            logger.info("tearing down server")
            try:
                self._listener.close()
            except OSError:
                pass
            self._listener = None


# ══════════════════════════════════════════════════════════════
# CLIENT
# ══════════════════════════════════════════════════════════════

class ClientState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    HANDSHAKING = "handshaking"
    CONNECTED = "connected"
    CLOSED = "closed"


def generate_client_id() -> int:
    """Client identity derived from wall-clock milliseconds; never the host id."""
    return max(int(time.time() * 1000), HOST_PLAYER_ID + 1)


class ClientTransport:
    """
    Connecting side of the game transport.

    Usage:
        transport = ClientTransport("192.168.1.10", GAME_PORT)
        transport.start()
        for event in transport.poll(): ...
        transport.send(PickRequest(...))
    """

    def __init__(
        self,
        host_address: str,
        port: int,
        protocol_id: int = PROTOCOL_ID,
        client_id: Optional[int] = None,
    ):
        self.host_address = host_address
        self.port = port
        self.protocol_id = protocol_id
        self.client_id = client_id if client_id is not None else generate_client_id()
        self.state = ClientState.IDLE
        self._conn: Optional[_Connection] = None

    @property
    def is_connected(self) -> bool:
        return self.state is ClientState.CONNECTED

    def start(self) -> None:
        """
        Begin a non-blocking connect.

        Raises:
            TransportError: If the socket cannot even start connecting
        """
        address = (self.host_address, self.port)
        logger.info(f"connecting to server at {self.host_address}:{self.port}")
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setblocking(False)
        try:
            err = sock.connect_ex(address)
        except OSError as e:
            sock.close()
            raise TransportError("connect", address, e) from e
        if err not in _CONNECT_IN_PROGRESS:
            sock.close()
            raise TransportError("connect", address, OSError(err, os.strerror(err)))
        self._conn = _Connection(sock, address)
        self.state = ClientState.CONNECTING

    def poll(self) -> List[TransportEvent]:
        """Advance the connection. Never blocks."""
        conn = self._conn
        if conn is None or self.state in (ClientState.IDLE, ClientState.CLOSED):
            return []

        if self.state is ClientState.CONNECTING:
            failure = self._check_connected(conn)
            if failure:
                return [self._fail(TransportEventKind.DISCONNECTED, failure)]
            if self.state is ClientState.CONNECTING:
                return self._check_timeout()

        events: List[TransportEvent] = []
        frames, alive = conn.receive()
        for frame in frames:
            decoded = _decode(frame, "host")
            if decoded is None:
                continue
            envelope, payload = decoded
            if self.state is ClientState.HANDSHAKING:
                if isinstance(payload, Reject):
                    logger.warning(f"host rejected connection: {payload.reason}")
                    events.append(self._fail(TransportEventKind.REJECTED, payload.reason))
                    return events
                if isinstance(payload, Welcome) and payload.client_id == self.client_id:
                    self.state = ClientState.CONNECTED
                    logger.info(f"connected to {self.host_address}:{self.port} as {self.client_id}")
                    events.append(TransportEvent(TransportEventKind.CONNECTED, peer_id=HOST_PLAYER_ID))
                    continue
                logger.warning(f"unexpected {envelope.message_type} during handshake")
                continue
            if envelope.channel == "control":
                continue
            events.append(TransportEvent(TransportEventKind.MESSAGE, peer_id=HOST_PLAYER_ID,
                                         envelope=envelope, payload=payload))

        if alive:
            alive = conn.flush()
        if not alive:
            events.append(self._fail(TransportEventKind.DISCONNECTED, "connection closed"))
            return events
        if self.state is ClientState.HANDSHAKING:
            events.extend(self._check_timeout())
        return events

    def _check_connected(self, conn: _Connection) -> str:
        try:
            _, writable, failed = select.select([], [conn.sock], [conn.sock], 0)
        except (OSError, ValueError) as e:
            return f"connect failed: {e}"
        if not writable and not failed:
            return ""
        err = conn.sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if err:
            return f"connect failed: {os.strerror(err)}"
        self.state = ClientState.HANDSHAKING
        conn.opened_at = time.monotonic()
        conn.queue(encode_message(Hello(protocol_id=self.protocol_id, client_id=self.client_id),
                                  sender=self.client_id))
        return ""

    def _check_timeout(self) -> List[TransportEvent]:
        if self._conn is not None and time.monotonic() - self._conn.opened_at > HANDSHAKE_TIMEOUT:
            return [self._fail(TransportEventKind.DISCONNECTED, "timed out")]
        return []

    def _fail(self, kind: TransportEventKind, reason: str) -> TransportEvent:
        if self._conn is not None:
            self._conn.close()
        self.state = ClientState.CLOSED
        if kind is TransportEventKind.DISCONNECTED:
            logger.info(f"disconnected from {self.host_address}:{self.port}: {reason}")
        return TransportEvent(kind, peer_id=HOST_PLAYER_ID, reason=reason)

    def send(self, payload: Payload) -> bool:
        if self._conn is None or self.state is not ClientState.CONNECTED:
            return False
        self._conn.queue(encode_message(payload, sender=self.client_id))
        return True

    def close(self) -> None:
        if self._conn is not None:
            logger.info("tearing down client")
            self._conn.flush()
            self._conn.close()
            self._conn = None
        self.state = ClientState.CLOSED
