"""Signed quantities of time.

Three kinds of duration exist:

- ``Fixed``: a count of milliseconds, seconds, minutes, hours, days or weeks.
  These convert exactly to milliseconds.
- ``Calendar``: a count of months or years. Their real length depends on where
  they are applied, so they only convert to milliseconds nominally.
- ``Compound``: a sum holding at most one bare duration per unit.

Adding durations of the same unit keeps them bare; anything else produces a
canonical ``Compound``:

    >>> days(2) + days(1)
    Fixed(unit='day', count=3)
    >>> str(months(1) + days(3))
    '1 month, 3 days'
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal, TypeAlias

from typing_extensions import override

from calrange.errors import IncompatibleKinds
from calrange.util import (
    DAY,
    HOUR,
    MILLISECOND,
    MINUTE,
    NOMINAL_MONTH,
    SECOND,
    WEEK,
    checked,
)

FixedUnit: TypeAlias = Literal[
    "millisecond", "second", "minute", "hour", "day", "week"
]
CalendarUnit: TypeAlias = Literal["month", "year"]

_FIXED_SCALES: dict[str, int] = {
    "millisecond": MILLISECOND,
    "second": SECOND,
    "minute": MINUTE,
    "hour": HOUR,
    "day": DAY,
    "week": WEEK,
}

_CALENDAR_MONTHS: dict[str, int] = {
    "month": 1,
    "year": 12,
}

# Compound components are kept largest unit first
_UNIT_ORDER = (
    "year",
    "month",
    "week",
    "day",
    "hour",
    "minute",
    "second",
    "millisecond",
)


class Duration(ABC):
    """Base class for durations.

    Two durations are equal when they hold the same total of months and the
    same total of fixed milliseconds, whatever units spell them out, so
    ``days(1) == hours(24)`` and ``compound(days(1)) == days(1)``.

    Ordering is exact between purely fixed durations and between purely
    calendar durations. A bare fixed duration and a bare calendar duration
    cannot be ordered. Orderings that involve a ``Compound`` fall back to
    nominal milliseconds (a month counts as 30.436875 days).
    """

    @abstractmethod
    def parts(self) -> tuple["Fixed | Calendar", ...]:
        """Return the bare durations this duration is the sum of."""

    @property
    def sign(self) -> int:
        """-1, 0 or 1 depending on the direction of this duration."""
        return _compare(self, _ZERO)

    @property
    def is_zero(self) -> bool:
        return split(self) == (0, 0)

    def __add__(self, other: object) -> "Duration":
        if not isinstance(other, Duration):
            return NotImplemented
        return _add(self, other)

    def __sub__(self, other: object) -> "Duration":
        if not isinstance(other, Duration):
            return NotImplemented
        return _add(self, -other)

    def __neg__(self) -> "Duration":
        return _scale(self, -1)

    def __abs__(self) -> "Duration":
        return -self if self.sign < 0 else self

    def __mul__(self, factor: object) -> "Duration":
        if isinstance(factor, bool) or not isinstance(factor, int):
            return NotImplemented
        return _scale(self, factor)

    __rmul__ = __mul__

    @override
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return split(self) == split(other)

    @override
    def __hash__(self) -> int:
        return hash(split(self))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return _compare(self, other) < 0

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return _compare(self, other) <= 0

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return _compare(self, other) > 0

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return _compare(self, other) >= 0


@dataclass(frozen=True, eq=False, kw_only=True)
class Fixed(Duration):
    """A whole number of a fixed-ratio unit (millisecond through week)."""

    unit: FixedUnit
    count: int

    def __post_init__(self) -> None:
        if self.unit not in _FIXED_SCALES:
            valid = ", ".join(_FIXED_SCALES)
            raise ValueError(
                f"Invalid fixed unit: '{self.unit}'\nValid units: {valid}\n"
                f"Hint: months and years are Calendar durations"
            )
        _check_count(self.count)

    @property
    def millis(self) -> int:
        return checked(self.count * _FIXED_SCALES[self.unit], "millisecond count")

    @override
    def parts(self) -> tuple["Fixed | Calendar", ...]:
        return (self,)

    @override
    def __str__(self) -> str:
        return _describe(self.unit, self.count)


@dataclass(frozen=True, eq=False, kw_only=True)
class Calendar(Duration):
    """A whole number of months or years."""

    unit: CalendarUnit
    count: int

    def __post_init__(self) -> None:
        if self.unit not in _CALENDAR_MONTHS:
            valid = ", ".join(_CALENDAR_MONTHS)
            raise ValueError(
                f"Invalid calendar unit: '{self.unit}'\nValid units: {valid}"
            )
        _check_count(self.count)

    @property
    def months(self) -> int:
        return checked(self.count * _CALENDAR_MONTHS[self.unit], "month count")

    @override
    def parts(self) -> tuple["Fixed | Calendar", ...]:
        return (self,)

    @override
    def __str__(self) -> str:
        return _describe(self.unit, self.count)


@dataclass(frozen=True, eq=False, kw_only=True)
class Compound(Duration):
    """A sum of bare durations, at most one per unit, largest unit first.

    Build these with :func:`compound` or by adding durations of different
    units. Both merge repeated units and drop zero components.
    """

    components: tuple[Fixed | Calendar, ...] = ()

    def __post_init__(self) -> None:
        units = [
            part.unit
            for part in self.components
            if isinstance(part, (Fixed, Calendar)) and part.count != 0
        ]
        ordered = [unit for unit in _UNIT_ORDER if unit in units]
        if len(units) != len(self.components) or units != ordered:
            raise ValueError(
                f"Compound components must be non-zero bare durations with "
                f"distinct units, largest unit first.\n"
                f"Got: {self.components!r}\n"
                f"Fix: build compounds with compound(), "
                f"e.g. compound(months(1), days(3))"
            )

    @override
    def parts(self) -> tuple[Fixed | Calendar, ...]:
        return self.components

    @override
    def __str__(self) -> str:
        if not self.components:
            return "empty period"
        return ", ".join(str(part) for part in self.components)


_ZERO = Compound()


def _check_count(count: Any) -> None:
    if isinstance(count, bool) or not isinstance(count, int):
        raise TypeError(
            f"Duration count must be an int, got {type(count).__name__!r}: {count!r}"
        )
    checked(count, "duration count")


def _describe(unit: str, count: int) -> str:
    return f"{count} {unit}" if abs(count) == 1 else f"{count} {unit}s"


def _bare(unit: str, count: int) -> Fixed | Calendar:
    if unit in _CALENDAR_MONTHS:
        return Calendar(unit=unit, count=count)  # type: ignore[arg-type]
    return Fixed(unit=unit, count=count)  # type: ignore[arg-type]


def split(duration: Duration) -> tuple[int, int]:
    """Return ``(months, millis)``: the calendar and fixed totals of a duration.

    Years count as twelve months. The totals are plain integers and are not
    range-checked; callers that store them check them.
    """
    months = 0
    millis = 0
    for part in duration.parts():
        match part:
            case Fixed(unit=unit, count=count):
                millis += count * _FIXED_SCALES[unit]
            case Calendar(unit=unit, count=count):
                months += count * _CALENDAR_MONTHS[unit]
    return months, millis


def nominal_millis(duration: Duration) -> int:
    """Milliseconds in ``duration`` with months at their mean Gregorian length.

    Not range-checked; used for estimates and orderings only.
    """
    months, millis = split(duration)
    return months * NOMINAL_MONTH + millis


def nominal_key(months: int, millis: int) -> tuple[int, int]:
    """Ordering key for a ``(months, millis)`` total, as used for compounds.

    Sorts by nominal milliseconds, then by months. Agrees with the exact
    ordering whenever one of the totals is zero on both sides.
    """
    return months * NOMINAL_MONTH + millis, months


def _compare(a: Duration, b: Duration) -> int:
    a_months, a_millis = split(a)
    b_months, b_millis = split(b)
    if a_months == 0 and b_months == 0:
        key_a, key_b = (a_millis,), (b_millis,)
    elif a_millis == 0 and b_millis == 0:
        key_a, key_b = (a_months,), (b_months,)
    elif not isinstance(a, Compound) and not isinstance(b, Compound):
        raise IncompatibleKinds(
            f"Cannot order {a} against {b}: a month or year has no fixed length.\n"
            f"Hint: combine them with compound() to compare nominally"
        )
    else:
        # Exact only when both sides hold the same calendar part
        key_a = nominal_key(a_months, a_millis)
        key_b = nominal_key(b_months, b_millis)
    return (key_a > key_b) - (key_a < key_b)


def _add(a: Duration, b: Duration) -> Duration:
    match a, b:
        case Fixed(unit=unit, count=x), Fixed(unit=other, count=y) if unit == other:
            return Fixed(unit=unit, count=x + y)
        case Calendar(unit=unit, count=x), Calendar(unit=other, count=y) if (
            unit == other
        ):
            return Calendar(unit=unit, count=x + y)
        case _:
            return compound(a, b)


def _scale(duration: Duration, factor: int) -> Duration:
    match duration:
        case Fixed(unit=unit, count=count):
            return Fixed(unit=unit, count=count * factor)
        case Calendar(unit=unit, count=count):
            return Calendar(unit=unit, count=count * factor)
        case Compound(components=components):
            return compound(*(_scale(part, factor) for part in components))
        case _:
            raise TypeError(f"Unsupported duration type: {type(duration).__name__}")


def compound(*parts: Duration) -> Compound:
    """Sum durations into canonical compound form.

    Repeated units are merged and zero components dropped.

    Example:
        >>> compound(days(3), months(1), days(-1))
        Compound(components=(Calendar(unit='month', count=1), Fixed(unit='day', count=2)))
    """
    totals: dict[str, int] = {}
    for part in parts:
        if not isinstance(part, Duration):
            raise TypeError(
                f"compound() takes durations, got {type(part).__name__!r}: {part!r}"
            )
        for piece in part.parts():
            totals[piece.unit] = totals.get(piece.unit, 0) + piece.count
    return Compound(
        components=tuple(
            _bare(unit, totals[unit]) for unit in _UNIT_ORDER if totals.get(unit)
        )
    )


def to_millis(duration: Duration, *, nominal: bool = False) -> int:
    """Convert a duration to a whole number of milliseconds.

    Fixed parts convert exactly. Calendar parts have no fixed length and raise
    ``IncompatibleKinds`` unless ``nominal`` is set, in which case months and
    years count as their mean Gregorian length (30.436875 and 365.2425 days).

    Raises:
        IncompatibleKinds: If the duration has a calendar part and not nominal
        ArithmeticOverflow: If the result does not fit in int64
    """
    months, millis = split(duration)
    if months and not nominal:
        raise IncompatibleKinds(
            f"{duration} has no exact length in milliseconds.\n"
            f"Hint: pass nominal=True to use mean Gregorian month lengths"
        )
    return checked(months * NOMINAL_MONTH + millis, "millisecond total")


def milliseconds(count: int) -> Fixed:
    return Fixed(unit="millisecond", count=count)


def seconds(count: int) -> Fixed:
    return Fixed(unit="second", count=count)


def minutes(count: int) -> Fixed:
    return Fixed(unit="minute", count=count)


def hours(count: int) -> Fixed:
    return Fixed(unit="hour", count=count)


def days(count: int) -> Fixed:
    return Fixed(unit="day", count=count)


def weeks(count: int) -> Fixed:
    return Fixed(unit="week", count=count)


def months(count: int) -> Calendar:
    return Calendar(unit="month", count=count)


def years(count: int) -> Calendar:
    return Calendar(unit="year", count=count)
