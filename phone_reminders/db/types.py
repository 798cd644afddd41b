"""Column types."""

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator

from phone_reminders.time_utils import to_utc


class AwareDateTime(TypeDecorator):
    """DateTime column holding UTC instants.

    Values are bound as UTC. On backends without time zone support (SQLite)
    the UTC wall time is stored and tzinfo is restored on read, so rows
    always load as aware datetimes and compare correctly with utc_now().
    """

    impl = DateTime
    cache_ok = True

    def __init__(self) -> None:
        super().__init__(timezone=True)

    def process_bind_param(self, value, dialect):
        value = to_utc(value)
        if value is not None and dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        return to_utc(value)
