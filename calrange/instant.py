"""Absolute points in time.

Two resolutions exist and they do not mix:

- ``CalendarDay``: whole days since 1970-01-01
- ``Timestamp``: milliseconds since 1970-01-01T00:00:00 UTC

Month and year durations are applied with python-dateutil's
``relativedelta``, which clamps to the last day of shorter months
(2025-01-31 plus one month is 2025-02-28).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import ClassVar

from dateutil.relativedelta import relativedelta
from typing_extensions import override

from calrange.duration import Duration, Fixed, split
from calrange.errors import ArithmeticOverflow, IncompatibleKinds
from calrange.util import DAY, checked

_EPOCH_DATE = date(1970, 1, 1)
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)
_MAX_DATETIME = datetime.max.replace(tzinfo=timezone.utc)


class Instant(ABC):
    """Base class for instants.

    Instants of the same kind are ordered and can be subtracted. Mixing kinds
    raises ``IncompatibleKinds``; equality between kinds is simply False.
    """

    # Last ordinal that calendar durations can reach
    _LAST_ORDINAL: ClassVar[int]

    @property
    @abstractmethod
    def ordinal(self) -> int:
        """Position on this kind's own axis (days or milliseconds)."""

    @abstractmethod
    def _offset(self, duration: Duration, times: int = 1) -> int:
        """Ordinal of ``self + duration * times`` as a plain, unchecked integer."""

    @abstractmethod
    def _shift(self, duration: Duration) -> "Instant":
        pass

    @abstractmethod
    def _difference(self, other: "Instant") -> Duration:
        pass

    def _require_kind(self, other: "Instant", action: str) -> None:
        if type(other) is not type(self):
            raise IncompatibleKinds(
                f"Cannot {action} {type(self).__name__} and "
                f"{type(other).__name__}.\n"
                f"Hint: calendar days and timestamps have different resolutions; "
                f"convert one with to_date()/to_datetime() first"
            )

    def __add__(self, other: object) -> "Instant":
        if not isinstance(other, Duration):
            return NotImplemented
        return self._shift(other)

    __radd__ = __add__

    def __sub__(self, other: object) -> "Instant | Duration":
        if isinstance(other, Duration):
            return self._shift(-other)
        if isinstance(other, Instant):
            self._require_kind(other, "subtract")
            return self._difference(other)
        return NotImplemented

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        self._require_kind(other, "compare")
        return self.ordinal < other.ordinal

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        self._require_kind(other, "compare")
        return self.ordinal <= other.ordinal

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        self._require_kind(other, "compare")
        return self.ordinal > other.ordinal

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        self._require_kind(other, "compare")
        return self.ordinal >= other.ordinal


@dataclass(frozen=True, kw_only=True)
class CalendarDay(Instant):
    """A calendar date, stored as whole days since 1970-01-01.

    Only whole-day fixed durations and calendar durations apply to a
    calendar day; hours or minutes raise ``IncompatibleKinds``.
    """

    days: int

    _LAST_ORDINAL: ClassVar[int] = (date.max - _EPOCH_DATE).days

    def __post_init__(self) -> None:
        checked(self.days, "calendar day")

    @classmethod
    def from_date(cls, value: date) -> "CalendarDay":
        if isinstance(value, datetime):
            raise TypeError(
                f"CalendarDay.from_date() takes a date, got datetime {value!r}.\n"
                f"Hint: use Timestamp.from_datetime() or pass value.date()"
            )
        return cls(days=(value - _EPOCH_DATE).days)

    def to_date(self) -> date:
        try:
            return _EPOCH_DATE + timedelta(days=self.days)
        except OverflowError as exc:
            raise ArithmeticOverflow(
                f"Calendar day {self.days} is outside the supported dates "
                f"({date.min} to {date.max})"
            ) from exc

    @property
    @override
    def ordinal(self) -> int:
        return self.days

    @override
    def _offset(self, duration: Duration, times: int = 1) -> int:
        months, millis = split(duration)
        if millis % DAY:
            raise IncompatibleKinds(
                f"Cannot add {duration} to a calendar day; only whole days apply.\n"
                f"Hint: use a Timestamp for sub-day resolution"
            )
        months, millis = months * times, millis * times
        base = self.days
        if months:
            try:
                shifted = self.to_date() + relativedelta(months=months)
            except (OverflowError, ValueError) as exc:
                amount = duration if times == 1 else f"{times} x {duration}"
                raise ArithmeticOverflow(
                    f"Adding {amount} to {self} leaves the supported dates"
                ) from exc
            base = (shifted - _EPOCH_DATE).days
        return base + millis // DAY

    @override
    def _shift(self, duration: Duration) -> "CalendarDay":
        return CalendarDay(days=self._offset(duration))

    @override
    def _difference(self, other: Instant) -> Duration:
        return Fixed(unit="day", count=self.days - other.ordinal)

    def __str__(self) -> str:
        try:
            return self.to_date().isoformat()
        except ArithmeticOverflow:
            return repr(self)


@dataclass(frozen=True, kw_only=True)
class Timestamp(Instant):
    """A UTC instant with millisecond resolution."""

    millis: int

    _LAST_ORDINAL: ClassVar[int] = (_MAX_DATETIME - _EPOCH) // _ONE_MS

    def __post_init__(self) -> None:
        checked(self.millis, "timestamp")

    @classmethod
    def from_datetime(cls, value: datetime) -> "Timestamp":
        """Convert a timezone-aware datetime, truncating below milliseconds.

        Raises:
            TypeError: If ``value`` is naive
        """
        if value.tzinfo is None:
            raise TypeError(
                f"Timestamp requires a timezone-aware datetime.\n"
                f"Got naive datetime: {value!r}\n"
                f"Hint: Add timezone info:\n"
                f"  from zoneinfo import ZoneInfo\n"
                f"  dt = datetime(..., tzinfo=ZoneInfo('UTC'))  "
                f"# or 'US/Pacific', etc.\n"
                f"  # Or use timezone.utc for UTC:\n"
                f"  dt = datetime(..., tzinfo=timezone.utc)"
            )
        return cls(millis=(value - _EPOCH) // _ONE_MS)

    def to_datetime(self) -> datetime:
        try:
            return _EPOCH + timedelta(milliseconds=self.millis)
        except OverflowError as exc:
            raise ArithmeticOverflow(
                f"Timestamp {self.millis} is outside the supported datetimes"
            ) from exc

    @property
    @override
    def ordinal(self) -> int:
        return self.millis

    @override
    def _offset(self, duration: Duration, times: int = 1) -> int:
        months, millis = split(duration)
        months, millis = months * times, millis * times
        base = self.millis
        if months:
            try:
                shifted = self.to_datetime() + relativedelta(months=months)
            except (OverflowError, ValueError) as exc:
                amount = duration if times == 1 else f"{times} x {duration}"
                raise ArithmeticOverflow(
                    f"Adding {amount} to {self} leaves the supported datetimes"
                ) from exc
            base = (shifted - _EPOCH) // _ONE_MS
        return base + millis

    @override
    def _shift(self, duration: Duration) -> "Timestamp":
        return Timestamp(millis=self._offset(duration))

    @override
    def _difference(self, other: Instant) -> Duration:
        return Fixed(unit="millisecond", count=self.millis - other.ordinal)

    def __str__(self) -> str:
        try:
            return self.to_datetime().isoformat(timespec="milliseconds")
        except ArithmeticOverflow:
            return repr(self)
