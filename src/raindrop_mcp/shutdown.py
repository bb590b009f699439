"""Graceful shutdown for the STDIO server process.

Lifecycle: running → draining → stopped.

- The first SIGINT/SIGTERM moves the server to draining: the server task is
  cancelled, given up to ``timeout`` seconds to finish, and the cleanup
  callback (closing the Raindrop.io client) runs. The process then exits 0.
- A second signal while draining forces an immediate exit with status 1, as
  does the drain timer when neither the drain nor cleanup finishes within
  ``timeout`` plus ``force_exit_margin`` seconds.
- Unhandled asyncio task errors are logged and trigger a drain with exit
  status 1.
"""
import asyncio
import enum
import logging
import os
import signal
import sys
from typing import Awaitable, Callable, Optional

logger = logging.getLogger("raindrop-mcp.shutdown")

# Extra time after the drain wait for cleanup before exit is forced
FORCE_EXIT_MARGIN_SECONDS = 2.0


class ShutdownState(str, enum.Enum):
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class ShutdownTransitionError(Exception):
    """Raised when the shutdown controller is moved to a state it cannot reach."""


# Maps current state → allowed next states
TRANSITION_MATRIX: dict[ShutdownState, list[ShutdownState]] = {
    ShutdownState.RUNNING: [
        ShutdownState.DRAINING,  # signal or loop error
        ShutdownState.STOPPED,   # session ended on its own (stdin closed)
    ],
    ShutdownState.DRAINING: [
        ShutdownState.STOPPED,
    ],
    ShutdownState.STOPPED: [],
}


class GracefulShutdown:
    def __init__(
        self,
        cleanup: Optional[Callable[[], Awaitable[None]]] = None,
        timeout: float = 5.0,
        force_exit: Callable[[int], None] = os._exit,
        force_exit_margin: float = FORCE_EXIT_MARGIN_SECONDS,
    ):
        self.state = ShutdownState.RUNNING
        self.exit_code = 0
        self.timeout = timeout
        self._cleanup = cleanup
        self._force_exit = force_exit
        self.force_exit_margin = force_exit_margin
        self._drain_timer: Optional[asyncio.TimerHandle] = None
        self._stop = asyncio.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def _transition(self, new_state: ShutdownState) -> None:
        if new_state not in TRANSITION_MATRIX[self.state]:
            raise ShutdownTransitionError(
                f"Invalid shutdown transition: {self.state.value} → {new_state.value}"
            )
        logger.debug(f"Shutdown state: {self.state.value} → {new_state.value}")
        self.state = new_state
        if new_state is ShutdownState.STOPPED and self._drain_timer is not None:
            self._drain_timer.cancel()
            self._drain_timer = None

    def install(self, loop: asyncio.AbstractEventLoop) -> None:
        """Hook signal handlers and the loop exception handler into ``loop``."""
        self._loop = loop
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.handle_signal, sig.name)
            except (NotImplementedError, RuntimeError):
                # Windows event loops have no add_signal_handler
                logger.debug(f"Signal handler for {sig.name} not supported")
        loop.set_exception_handler(self.handle_loop_exception)

    def handle_signal(self, signame: str) -> None:
        if self.state is ShutdownState.DRAINING:
            logger.error(f"Received second {signame} while shutting down, forcing exit")
            self._force_exit(1)
            return
        if self.state is ShutdownState.STOPPED:
            return
        logger.info(f"Received {signame}, shutting down gracefully...")
        self.request_stop()

    def handle_loop_exception(self, loop: asyncio.AbstractEventLoop, context: dict) -> None:
        exc = context.get("exception")
        logger.error(
            f"Unhandled error in event loop: {context.get('message', 'no message')}",
            exc_info=exc,
        )
        self.exit_code = 1
        if self.state is ShutdownState.RUNNING:
            self.request_stop(exit_code=1)

    def request_stop(self, exit_code: int = 0) -> None:
        """Begin draining. The drain timer forces exit if shutdown and cleanup stall."""
        self._transition(ShutdownState.DRAINING)
        self.exit_code = max(self.exit_code, exit_code)
        if self._loop is not None:
            self._drain_timer = self._loop.call_later(
                self.timeout + self.force_exit_margin, self._on_drain_timeout
            )
        self._stop.set()

    def _on_drain_timeout(self) -> None:
        logger.error(
            f"Shutdown did not finish within {self.timeout + self.force_exit_margin}s, forcing exit"
        )
        self._force_exit(1)

    async def run_until_stopped(self, server_task: "asyncio.Task") -> int:
        """Wait for the server task or a stop request, then drain and clean up."""
        stop_waiter = asyncio.ensure_future(self._stop.wait())
        try:
            done, _ = await asyncio.wait(
                {server_task, stop_waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            stop_waiter.cancel()

        if server_task in done:
            if not server_task.cancelled() and server_task.exception() is not None:
                logger.error("MCP server stopped with an error", exc_info=server_task.exception())
                self.exit_code = 1
            else:
                logger.info("MCP session ended")
        else:
            server_task.cancel()
            finished, _ = await asyncio.wait({server_task}, timeout=self.timeout)
            if not finished:
                logger.warning(f"Server task still running after {self.timeout}s, cleaning up anyway")

        if self._cleanup is not None:
            try:
                await self._cleanup()
            except Exception:
                logger.exception("Error during shutdown cleanup")
                self.exit_code = 1

        self._transition(ShutdownState.STOPPED)
        logger.info(f"Shutdown complete (exit code {self.exit_code})")
        return self.exit_code


def log_uncaught_exception(exc_type, exc, tb) -> None:
    """``sys.excepthook`` that logs to stderr before the interpreter exits with 1."""
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc, tb)
        return
    logger.critical("Uncaught exception", exc_info=(exc_type, exc, tb))
