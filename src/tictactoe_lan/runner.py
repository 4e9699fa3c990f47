# Area: Runner
"""
tictactoe_lan.runner - Application loop
=======================================

Single-threaded cooperative loop: every tick polls the controller
(transport and discovery) and lets the front end render and feed user
commands. All session state is touched on this thread only.
"""

from __future__ import annotations
import logging
import signal
import threading
import time
from typing import Optional, Protocol

from ._session.controller import GameController
from ._shared import get_protocol_logger, setup_logging
from .config import GameConfig, validate_config

logger = logging.getLogger("tictactoe_lan")


class Frontend(Protocol):
    """What the runner needs from a front end."""

    def start(self, controller: GameController) -> None:
        ...

    def update(self, controller: GameController) -> bool:
        """Handle pending input and render. Return False to quit."""
        ...

    def stop(self) -> None:
        ...


class GameRunner:
    """
    Runs the controller at the configured tick rate until stopped.

    Usage:
        runner = GameRunner(config, frontend=ConsoleFrontend())
        runner.controller.host_game()
        runner.run()
    """

    def __init__(
        self,
        config: GameConfig,
        frontend: Optional[Frontend] = None,
        controller: Optional[GameController] = None,
        configure_logging: bool = True,
    ):
        validate_config(config)
        self.config = config
        if configure_logging:
            setup_logging(log_file_path=config.log_file, level=config.log_level)

        self.controller = controller or GameController(config)
        self.frontend = frontend
        self.tick_interval = config.tick_interval_seconds
        self._running = False

        get_protocol_logger().enabled = config.protocol_log

    def stop(self) -> None:
        self._running = False

    def run(self, max_ticks: Optional[int] = None) -> None:
        """Start the loop. Blocks until quit, SIGINT or `max_ticks`."""
        self._running = True
        previous_handler = None
        if threading.current_thread() is threading.main_thread():
            previous_handler = signal.signal(signal.SIGINT, lambda s, f: self.stop())

        self._log_startup()
        if self.frontend is not None:
            self.frontend.start(self.controller)

        ticks = 0
        try:
            while self._running:
                started = time.monotonic()
                try:
                    self.controller.tick()
                    if self.frontend is not None and not self.frontend.update(self.controller):
                        break
                except KeyboardInterrupt:
                    break
                except Exception as e:
                    logger.error(f"Loop error: {e}", exc_info=True)

                ticks += 1
                if max_ticks is not None and ticks >= max_ticks:
                    break
                remaining = self.tick_interval - (time.monotonic() - started)
                if remaining > 0:
                    time.sleep(remaining)
        finally:
            if self.frontend is not None:
                self.frontend.stop()
            self.controller.shutdown()
            if previous_handler is not None:
                signal.signal(signal.SIGINT, previous_handler)
            self._running = False
            logger.info("Game runner stopped.")

    def _log_startup(self) -> None:
        """Log startup information."""
        logger.info("=" * 60)
        logger.info("  Tic-tac-toe LAN - Starting")
        logger.info(f"  Game port:      {self.config.game_port}")
        logger.info(f"  Discovery port: {self.config.discovery_port}")
        logger.info(f"  Tick:           every {self.tick_interval}s")
        logger.info("=" * 60)
