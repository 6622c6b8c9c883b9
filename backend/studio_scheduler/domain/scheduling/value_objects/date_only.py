"""Calendar-date value object used for every delay and progress comparison."""

from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone
from typing import Any

from pydantic import Field, model_serializer, model_validator

from ...shared.base import ValueObject

_EPOCH = date(1970, 1, 1)


class DateOnly(ValueObject):
    """
    A calendar date with no time of day, stored as days since 1970-01-01.

    Datetimes are converted to UTC before the time is dropped; naive datetimes
    are taken to be UTC already. Comparing two ``DateOnly`` values is an integer
    comparison, so results never depend on the host timezone.
    """

    epoch_day: int = Field(description="Days since 1970-01-01 (UTC)")

    @classmethod
    def from_date(cls, value: date) -> "DateOnly":
        return cls(epoch_day=(value - _EPOCH).days)

    @classmethod
    def from_datetime(cls, value: datetime) -> "DateOnly":
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return cls.from_date(value.date())

    @classmethod
    def parse(cls, value: Any) -> "DateOnly | None":
        """Build from a date, datetime, ISO string or another ``DateOnly``; ``None`` passes through."""
        if value is None:
            return None
        if isinstance(value, DateOnly):
            return value
        if isinstance(value, datetime):
            return cls.from_datetime(value)
        if isinstance(value, date):
            return cls.from_date(value)
        if isinstance(value, str):
            text = value.strip()
            if len(text) == 10:
                return cls.from_date(date.fromisoformat(text))
            return cls.from_datetime(datetime.fromisoformat(text.replace("Z", "+00:00")))
        raise TypeError(f"Cannot build DateOnly from {type(value).__name__}")

    @classmethod
    def today(cls, clock: Callable[[], datetime] | None = None) -> "DateOnly":
        now = clock() if clock is not None else datetime.now(timezone.utc)
        return cls.from_datetime(now)

    def to_date(self) -> date:
        return _EPOCH + timedelta(days=self.epoch_day)

    def add_days(self, days: int) -> "DateOnly":
        return DateOnly(epoch_day=self.epoch_day + days)

    def days_until(self, other: "DateOnly") -> int:
        return other.epoch_day - self.epoch_day

    def __lt__(self, other: "DateOnly") -> bool:
        return self.epoch_day < other.epoch_day

    def __le__(self, other: "DateOnly") -> bool:
        return self.epoch_day <= other.epoch_day

    def __gt__(self, other: "DateOnly") -> bool:
        return self.epoch_day > other.epoch_day

    def __ge__(self, other: "DateOnly") -> bool:
        return self.epoch_day >= other.epoch_day

    def __str__(self) -> str:
        return self.to_date().isoformat()

    @model_serializer
    def _serialize(self) -> str:
        return self.to_date().isoformat()

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Any:
        if isinstance(value, (str, date)):
            return {"epoch_day": cls.parse(value).epoch_day}
        return value
