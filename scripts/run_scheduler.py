#!/usr/bin/env python3
"""Entrypoint for running the reminder scheduler outside the web process.

Usage:
    # Single tick (dispatch everything currently due, then exit)
    python scripts/run_scheduler.py --once

    # Continuous loop (Ctrl+C to stop)
    python scripts/run_scheduler.py --loop

    # Loop with custom interval
    python scripts/run_scheduler.py --loop --interval 10

    # Limit iterations (for testing)
    python scripts/run_scheduler.py --loop --max-iterations 5

Environment variables:
    DATABASE_URL: Database connection string
    TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_PHONE_NUMBER: required
    SCHEDULER_INTERVAL_SECONDS: Seconds between ticks (default: 60)
    SCHEDULER_BATCH_SIZE: Reminders per tick (default: 100)

Run only one scheduler per database: the web app's built-in scheduler
should be disabled (SCHEDULER_ENABLED=false) when this script is used.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlmodel import SQLModel

from phone_reminders.config import NotifierConfigurationError
from phone_reminders.db.session import engine
from phone_reminders.workers import ReminderScheduler, configure_logging


def main() -> int:
    """Main entrypoint for the scheduler."""
    parser = argparse.ArgumentParser(
        description="Run the reminder scheduler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    # Mode selection
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        "--once",
        action="store_true",
        help="Run one tick and exit",
    )
    mode.add_argument(
        "--loop",
        action="store_true",
        help="Run ticks continuously",
    )

    # Configuration
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Seconds between ticks (loop mode only)",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Maximum ticks before stopping (loop mode only)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Reminders to process per tick",
    )

    # Logging
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Reduce logging to warnings only",
    )

    args = parser.parse_args()

    if args.verbose:
        configure_logging(logging.DEBUG)
    elif args.quiet:
        configure_logging(logging.WARNING)
    else:
        configure_logging(logging.INFO)

    logger = logging.getLogger(__name__)

    try:
        from phone_reminders.models import Reminder  # noqa: F401
        SQLModel.metadata.create_all(engine)

        scheduler = ReminderScheduler(
            interval_seconds=args.interval,
            batch_size=args.batch_size,
        )
    except NotifierConfigurationError as e:
        logger.error(f"Scheduler misconfigured: {e}")
        return 2

    try:
        if args.once:
            logger.info("Running one scheduler tick...")
            result = scheduler.run_once()

            print("\n--- Scheduler Tick Summary ---")
            print(f"Status: {result.status.value}")
            print(f"Sent: {result.processed_count}")
            print(f"Failed: {result.failed_count}")
            print(f"Skipped: {result.skipped_count}")
            print(f"Errors: {result.error_count}")
            for key, value in result.metadata.items():
                print(f"{key}: {value}")
            for err in result.errors:
                print(f"  - {err}")

            return 0 if result.error_count == 0 else 1

        logger.info("Starting scheduler loop (Ctrl+C to stop)...")
        scheduler.run_forever(max_iterations=args.max_iterations)
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.error(f"Scheduler failed: {e}", exc_info=True)
        return 1
    finally:
        scheduler.notifier.close()


if __name__ == "__main__":
    sys.exit(main())
