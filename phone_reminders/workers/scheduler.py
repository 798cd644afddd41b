"""Reminder scheduler process.

Owns the periodic dispatch loop:
- run_once(): a single tick, synchronous, usable directly from tests
- start()/stop(): background thread for the web process
- run_forever(): foreground loop with signal handling for the CLI

Ticks never overlap. A tick that starts while the previous one is still
running is skipped, so an overrunning tick cannot double-dispatch.
"""

import logging
import signal
import threading
from collections.abc import Callable
from datetime import datetime

from sqlmodel import Session

from phone_reminders.config import get_settings
from phone_reminders.notifications import Notifier
from phone_reminders.workers.base import WorkerResult
from phone_reminders.workers.reminder_worker import ReminderDispatchWorker

logger = logging.getLogger(__name__)


def _default_session_factory() -> Session:
    from phone_reminders.db.session import engine

    return Session(engine)


class ReminderScheduler:
    """Periodic driver for the reminder dispatch worker.

    Usage:
        scheduler = ReminderScheduler(notifier=Notifier.from_settings())
        scheduler.start()
        ...
        scheduler.stop()
    """

    def __init__(
        self,
        notifier: Notifier | None = None,
        interval_seconds: float | None = None,
        batch_size: int | None = None,
        session_factory: Callable[[], Session] | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            notifier: Notifier to deliver with (default: Twilio from settings,
                which raises NotifierConfigurationError without credentials)
            interval_seconds: Seconds between ticks (default from config)
            batch_size: Maximum reminders per tick (default from config)
            session_factory: Callable returning a new Session per tick
        """
        settings = get_settings()
        self.interval_seconds = interval_seconds or settings.SCHEDULER_INTERVAL_SECONDS
        self.batch_size = batch_size or settings.SCHEDULER_BATCH_SIZE
        self.notifier = notifier or Notifier.from_settings(settings)
        self.worker = ReminderDispatchWorker(self.notifier, batch_size=self.batch_size)

        self._session_factory = session_factory or _default_session_factory
        self._tick_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(
        self,
        session: Session | None = None,
        now: datetime | None = None,
    ) -> WorkerResult | None:
        """Execute one tick.

        Args:
            session: Optional database session (creates new if not provided)
            now: Reference time for due checks (default: current UTC time)

        Returns:
            WorkerResult, or None if another tick was still running
        """
        if not self._tick_lock.acquire(blocking=False):
            self._logger.warning("Previous tick still running, skipping this one")
            return None

        own_session = session is None
        try:
            if own_session:
                session = self._session_factory()
            return self.worker.run(session, now=now)
        finally:
            if own_session and session is not None:
                session.close()
            self._tick_lock.release()

    def start(self) -> None:
        """Start ticking in a background thread. Calling twice is a no-op."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop,
            name="reminder-scheduler",
            daemon=True,
        )
        self._thread.start()
        self._logger.info(
            f"Reminder scheduler started (checking every {self.interval_seconds} seconds)"
        )

    def stop(self, timeout: float | None = 30.0) -> None:
        """Stop the background thread, waiting for an in-flight tick."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                self._logger.warning("Reminder scheduler did not stop within timeout")
            self._thread = None
        self._logger.info("Reminder scheduler stopped")

    def request_shutdown(self) -> None:
        """Request graceful shutdown of the loop."""
        self._stop_event.set()

    def run_forever(self, max_iterations: int | None = None) -> None:
        """Run the loop in the calling thread until SIGINT/SIGTERM.

        Args:
            max_iterations: Max ticks to run (None for infinite)
        """
        self._setup_signal_handlers()
        self._stop_event.clear()
        self._loop(max_iterations=max_iterations)

    def _loop(self, max_iterations: int | None = None) -> None:
        iterations = 0
        while not self._stop_event.is_set():
            if max_iterations is not None and iterations >= max_iterations:
                self._logger.info(f"Reached max iterations ({max_iterations}), stopping")
                break

            self._safe_tick()
            iterations += 1

            self._stop_event.wait(self.interval_seconds)

        self._logger.info("Scheduler loop exited", extra={"total_iterations": iterations})

    def _safe_tick(self) -> None:
        try:
            result = self.run_once()
        except Exception as e:
            self._logger.error("Scheduler tick failed", extra={"error": str(e)}, exc_info=True)
            return

        if result is not None:
            self._logger.info(
                "Tick complete",
                extra={
                    "processed": result.processed_count,
                    "failed": result.failed_count,
                    "errors": result.error_count,
                },
            )

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        def handle_signal(signum, frame):
            self._logger.info(f"Received signal {signum}, requesting shutdown")
            self._stop_event.set()

        signal.signal(signal.SIGINT, handle_signal)
        signal.signal(signal.SIGTERM, handle_signal)


def configure_logging(level: int = logging.INFO) -> None:
    """Configure logging for scheduler processes.

    Args:
        level: Logging level (default: INFO)
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logging.getLogger("phone_reminders").setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("twilio.http_client").setLevel(logging.WARNING)
