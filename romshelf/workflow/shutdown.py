"""
Ctrl+C handling for enrichment runs.

The first SIGINT during a run sets a shutdown event: the orchestrator
finishes the entry in progress, saves once more and the process exits
with 130. A second SIGINT during a run aborts without saving. After the
run has completed, SIGINT exits immediately.
"""

import asyncio
import logging
import signal
import sys
from typing import Any, Optional

logger = logging.getLogger(__name__)


class InterruptHandler:
    """
    Installs a SIGINT handler bound to an asyncio shutdown event.

    Example:
        handler = InterruptHandler()
        handler.install(asyncio.get_running_loop())
        handler.running = True
        await orchestrator.run(entries)  # checks handler.shutdown_event
        handler.running = False
    """

    def __init__(self):
        self.shutdown_event = asyncio.Event()
        self.running = False
        self.interrupted = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._previous_handler: Any = None

    def install(self, loop: asyncio.AbstractEventLoop) -> None:
        """Register the handler (main thread only)."""
        self._loop = loop
        self._previous_handler = signal.signal(signal.SIGINT, self.handle_signal)

    def restore(self) -> None:
        """Reinstate the handler that was active before install()."""
        if self._previous_handler is not None:
            signal.signal(signal.SIGINT, self._previous_handler)
            self._previous_handler = None

    def handle_signal(self, signum: int, frame: Any) -> None:
        if not self.running:
            logger.info("Interrupted after completion, exiting")
            sys.exit(0)

        if self.interrupted:
            logger.warning("Second interrupt received, aborting without saving")
            raise KeyboardInterrupt

        self.interrupted = True
        logger.warning("Interrupt received: finishing current entry and saving progress...")
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self.shutdown_event.set)
        else:
            self.shutdown_event.set()
