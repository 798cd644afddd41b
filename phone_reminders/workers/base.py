"""Base worker abstraction.

A worker runs processing cycles that:
1. Poll for work items that are due
2. Process each item on its own, committing per item
3. Record the outcome (completed or failed) with a conditional write
4. Report structured results for logging

Items are isolated from each other: an exception while handling one item
rolls back that item's changes, is logged, and leaves it untouched for the
next cycle. Nothing raised inside run() escapes to the caller.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlmodel import Session

from phone_reminders.time_utils import to_utc, utc_now

logger = logging.getLogger(__name__)


class WorkerStatus(str, Enum):
    """Status of a worker run."""

    SUCCESS = "success"
    PARTIAL = "partial"  # Some items processed, some failed
    FAILED = "failed"
    NO_WORK = "no_work"


@dataclass
class ItemOutcome:
    """Result of processing one item.

    Attributes:
        success: Whether the item's work was done
        error: Failure cause when success is False
        reference: Optional external reference (e.g. provider message id)
    """

    success: bool
    error: str | None = None
    reference: str | None = None


@dataclass
class WorkerResult:
    """Result of a worker processing cycle.

    Attributes:
        status: Overall status of the worker run
        processed_count: Number of items successfully processed
        failed_count: Number of items whose processing reported failure
        skipped_count: Items not handled this cycle (not due, no longer pending)
        error_count: Items left untouched because of an unexpected error
        duration_ms: Time taken for the processing cycle
        errors: List of error details
        metadata: Additional worker-specific counters
    """

    status: WorkerStatus
    processed_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    duration_ms: float = 0.0
    errors: list[dict[str, Any]] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "status": self.status.value,
            "processed_count": self.processed_count,
            "failed_count": self.failed_count,
            "skipped_count": self.skipped_count,
            "error_count": self.error_count,
            "duration_ms": self.duration_ms,
            "errors": self.errors,
            "metadata": self.metadata,
        }


# Generic type for work items
T = TypeVar("T")


class WorkerBase(ABC, Generic[T]):
    """Abstract base class for background workers.

    Workers follow this lifecycle per item:
    1. is_ready() - Re-check the item is actually due
    2. process_item() - Do the actual work, returning an ItemOutcome
    3. mark_completed() or mark_failed() - Conditional status write
    4. after_completed() - Follow-up work in its own transaction

    Subclasses must implement all abstract methods.
    """

    def __init__(self, batch_size: int = 100) -> None:
        """Initialize the worker.

        Args:
            batch_size: Maximum items to process per cycle
        """
        self.batch_size = batch_size
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    @abstractmethod
    def worker_name(self) -> str:
        """Return the worker name for logging."""
        pass

    @abstractmethod
    def fetch_pending(self, session: Session, now: datetime) -> list[T]:
        """Fetch items due at or before now (up to batch_size)."""
        pass

    @abstractmethod
    def is_ready(self, item: T, now: datetime) -> bool:
        """Return False for items that must not be processed yet."""
        pass

    @abstractmethod
    def process_item(self, session: Session, item: T) -> ItemOutcome:
        """Process a single item.

        Expected failures are reported through the returned outcome.
        Raised exceptions are treated as unexpected errors.
        """
        pass

    @abstractmethod
    def mark_completed(self, session: Session, item: T, outcome: ItemOutcome) -> bool:
        """Record success. Returns False if the item changed underneath us."""
        pass

    @abstractmethod
    def mark_failed(self, session: Session, item: T, outcome: ItemOutcome) -> bool:
        """Record failure. Returns False if the item changed underneath us."""
        pass

    @abstractmethod
    def get_item_id(self, item: T) -> UUID:
        """Get the unique identifier for an item."""
        pass

    def after_completed(self, session: Session, item: T, result: WorkerResult) -> None:
        """Hook run after a successful item has been committed."""

    def run(self, session: Session, now: datetime | None = None) -> WorkerResult:
        """Execute one processing cycle.

        Args:
            session: Database session
            now: Reference time for due checks (default: current UTC time)

        Returns:
            WorkerResult with processing statistics
        """
        start_time = utc_now()
        now = to_utc(now) if now else start_time
        result = WorkerResult(status=WorkerStatus.NO_WORK)

        self._logger.info(
            f"[{self.worker_name}] Starting processing cycle",
            extra={"batch_size": self.batch_size, "as_of": now.isoformat()},
        )

        try:
            items = self.fetch_pending(session, now)
        except Exception as e:
            session.rollback()
            self._logger.error(
                f"[{self.worker_name}] Failed to fetch pending items",
                extra={"error": str(e)},
                exc_info=True,
            )
            result.status = WorkerStatus.FAILED
            result.errors.append({"error": str(e)[:500], "stage": "fetch"})
            result.duration_ms = self._elapsed_ms(start_time)
            return result

        if not items:
            self._logger.debug(f"[{self.worker_name}] No pending items")
            result.duration_ms = self._elapsed_ms(start_time)
            return result

        self._logger.info(f"[{self.worker_name}] Found {len(items)} items to process")

        for item in items:
            item_id = self.get_item_id(item)

            try:
                if not self.is_ready(item, now):
                    result.skipped_count += 1
                    self._logger.debug(f"[{self.worker_name}] Item {item_id} not due yet")
                    continue

                outcome = self.process_item(session, item)

                if outcome.success:
                    if not self.mark_completed(session, item, outcome):
                        session.rollback()
                        result.skipped_count += 1
                        continue
                    session.commit()
                    result.processed_count += 1
                    self._logger.info(
                        f"[{self.worker_name}] Processed item {item_id}",
                        extra={"item_id": str(item_id)},
                    )
                else:
                    if not self.mark_failed(session, item, outcome):
                        session.rollback()
                        result.skipped_count += 1
                        continue
                    session.commit()
                    result.failed_count += 1
                    result.errors.append({"item_id": str(item_id), "error": outcome.error})
                    self._logger.warning(
                        f"[{self.worker_name}] Item {item_id} failed",
                        extra={"item_id": str(item_id), "error": outcome.error},
                    )
                    continue

            except Exception as e:
                session.rollback()
                error_msg = str(e)[:500]  # Truncate long errors
                result.error_count += 1
                result.errors.append({"item_id": str(item_id), "error": error_msg, "stage": "process"})
                self._logger.error(
                    f"[{self.worker_name}] Error processing item {item_id}, will retry next cycle",
                    extra={"item_id": str(item_id), "error": error_msg},
                    exc_info=True,
                )
                continue

            try:
                self.after_completed(session, item, result)
                session.commit()
            except Exception as e:
                session.rollback()
                error_msg = str(e)[:500]
                result.errors.append({"item_id": str(item_id), "error": error_msg, "stage": "after_completed"})
                self._logger.error(
                    f"[{self.worker_name}] Follow-up for item {item_id} failed",
                    extra={"item_id": str(item_id), "error": error_msg},
                    exc_info=True,
                )

        result.status = self._overall_status(result)
        result.duration_ms = self._elapsed_ms(start_time)

        self._logger.info(
            f"[{self.worker_name}] Cycle complete",
            extra=result.to_dict(),
        )

        return result

    @staticmethod
    def _overall_status(result: WorkerResult) -> WorkerStatus:
        problems = result.failed_count + result.error_count
        if result.processed_count > 0 and problems == 0:
            return WorkerStatus.SUCCESS
        if result.processed_count > 0:
            return WorkerStatus.PARTIAL
        if problems > 0:
            return WorkerStatus.FAILED
        return WorkerStatus.NO_WORK

    def _elapsed_ms(self, start: datetime) -> float:
        """Calculate elapsed time in milliseconds."""
        return (utc_now() - start).total_seconds() * 1000
