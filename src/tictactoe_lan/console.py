# Area: Frontend
"""
tictactoe_lan.console - Text front end
======================================

Renders the session on a terminal and turns typed commands into
controller actions. A daemon thread only reads stdin lines into a queue;
commands are executed from `update()` on the loop thread.

Commands:
    hotseat            play two local players on one board
    host               host a game and wait for a client
    join               look for hosts on the local network
    connect <ipv4>     connect to a host (in join mode)
    0-8                pick a cell
    hosts              list discovered hosts
    menu               back to the main menu
    quit               exit
"""

from __future__ import annotations
import queue
import sys
import threading
from typing import Dict, Optional, TextIO, Tuple

from ._session.controller import ROLE_LOCAL, GameController
from ._session.enums import SessionPhase
from ._shared import disable_console_mode, enable_console_mode
from .config import GRID_SIZE
from .errors import InvalidTransitionError
from .types import Symbol


def render_board(snapshot: Dict[int, Optional[Symbol]], size: int = GRID_SIZE) -> str:
    """Grid with X/O for occupied cells and the index for empty ones."""
    rows = []
    for r in range(size):
        cells = []
        for c in range(size):
            index = r * size + c
            symbol = snapshot.get(index)
            cells.append(symbol.glyph if symbol is not None else str(index))
        rows.append(" " + " | ".join(cells))
    return ("\n" + "---+" * (size - 1) + "---\n").join(rows)


def result_message(controller: GameController) -> str:
    """Text shown when a board has ended."""
    if controller.phase is SessionPhase.DRAW:
        return "It's a draw!"
    winner = controller.winner
    if winner is None:
        return "Game over."
    if controller.role == ROLE_LOCAL:
        return f"{winner.symbol.glyph} won!"
    if winner.player_id == controller.local_player_id:
        return "You won!"
    return "You lost!"


class ConsoleFrontend:
    """Line-based terminal front end."""

    def __init__(self, stream_in: Optional[TextIO] = None, stream_out: Optional[TextIO] = None):
        self.stream_in = stream_in if stream_in is not None else sys.stdin
        self.stream_out = stream_out if stream_out is not None else sys.stdout
        self._lines: "queue.Queue[str]" = queue.Queue()
        self._reader: Optional[threading.Thread] = None
        self._last_state: Optional[Tuple] = None
        self._quit = False

    # ── Runner hooks ─────────────────────────────────────────

    def start(self, controller: GameController) -> None:
        enable_console_mode()
        controller.add_host_listener(lambda ip: self._print(f"Found host {ip}"))
        self._reader = threading.Thread(target=self._read_lines, name="console-input", daemon=True)
        self._reader.start()

    def update(self, controller: GameController) -> bool:
        while True:
            try:
                line = self._lines.get_nowait()
            except queue.Empty:
                break
            self.handle_command(controller, line)
        self.render(controller)
        return not self._quit

    def stop(self) -> None:
        disable_console_mode()

    def _read_lines(self) -> None:
        for line in self.stream_in:
            self._lines.put(line)
        self._lines.put("quit")

    # ── Commands ─────────────────────────────────────────────

    def handle_command(self, controller: GameController, line: str) -> None:
        words = line.strip().split()
        if not words:
            return
        command, args = words[0].lower(), words[1:]
        try:
            if command == "quit":
                self._quit = True
            elif command == "menu":
                controller.return_to_menu()
            elif command == "hotseat":
                controller.start_hotseat()
            elif command == "host":
                controller.host_game()
            elif command == "join":
                controller.join_game()
            elif command == "connect":
                if not args:
                    self._print("Usage: connect <ipv4>")
                elif not controller.submit_address(args[0]):
                    self._print(f"Not a valid address: {args[0]}")
            elif command == "hosts":
                hosts = controller.discovered_hosts
                self._print("Hosts: " + (", ".join(hosts) if hosts else "none yet"))
            elif command.isdigit():
                self._pick(controller, int(command))
            else:
                self._print(f"Unknown command: {command}")
        except InvalidTransitionError:
            self._print(f"'{command}' is not available in {controller.phase.value}")

    def _pick(self, controller: GameController, cell_index: int) -> None:
        if controller.phase is not SessionPhase.PLAYING:
            self._print("No game running.")
            return
        if not controller.is_local_turn():
            self._print("Not your turn.")
            return
        result = controller.pick(cell_index)
        if result is not None and not result.accepted:
            self._print(f"Cannot pick {cell_index}: {result.reason.value}")

    # ── Rendering ────────────────────────────────────────────

    def render(self, controller: GameController, force: bool = False) -> None:
        """Print the screen for the current state if it changed."""
        board = controller.board_snapshot()
        state = (controller.phase, controller.current_turn, tuple(sorted(board.items(), key=lambda kv: kv[0])),
                 controller.winner_id, str(controller.last_error))
        if state == self._last_state and not force:
            return
        self._last_state = state
        self._print(self.screen(controller))

    def screen(self, controller: GameController) -> str:
        phase = controller.phase
        lines = []
        if controller.last_error is not None and phase in (SessionPhase.MAIN_MENU, SessionPhase.CONNECT):
            lines.append(f"Error: {controller.last_error}")

        if phase is SessionPhase.MAIN_MENU:
            lines.append("Main menu: hotseat | host | join | quit")
        elif phase is SessionPhase.HOSTING_LOBBY:
            lines.append(f"Waiting for a player to join on port {controller.config.game_port}... (menu to cancel)")
        elif phase is SessionPhase.CONNECT:
            hosts = controller.discovered_hosts
            lines.append("Type 'connect <ip>' to join a host.")
            if hosts:
                lines.append("Discovered: " + ", ".join(hosts))
        elif phase is SessionPhase.WAITING_CONNECTION:
            lines.append(f"Connecting to server @ {controller.target_address}")
        elif phase in (SessionPhase.PLAYING, SessionPhase.GAME_OVER, SessionPhase.DRAW):
            lines.append(render_board(controller.board_snapshot()))
            if phase is SessionPhase.PLAYING:
                turn = controller.current_turn
                mine = " (your turn)" if controller.is_local_turn() and controller.role != ROLE_LOCAL else ""
                lines.append(f"Turn: {turn.glyph if turn else '-'}{mine}")
            else:
                lines.append(result_message(controller))
                lines.append("Type 'menu' to return.")
        elif phase is SessionPhase.DISCONNECTED:
            lines.append("Connection to the other player was lost. Type 'menu' to return.")
        return "\n".join(lines)

    def _print(self, text: str) -> None:
        print(text, file=self.stream_out, flush=True)
