"""Strided ranges over temporal values.

A :class:`StridedRange` is the progression ``start, start + step,
start + 2*step, ...`` bounded by ``stop``. The endpoints are instants or
durations and the step is a duration, so plain integer range arithmetic does
not apply: units may differ and exact division may not exist. Step counts are
found by estimating with floating division and then correcting the estimate
with exact temporal arithmetic.

Example:
    >>> r = make_range_with_step(date(2025, 1, 1), days(3), date(2025, 1, 11))
    >>> len(r)
    4
    >>> r.last_remainder()
    Fixed(unit='day', count=1)
"""

import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Literal, TypeAlias

from calrange.duration import (
    Calendar,
    Compound,
    Duration,
    Fixed,
    compound,
    days,
    milliseconds,
    nominal_key,
    nominal_millis,
    split,
    to_millis,
)
from calrange.errors import ArithmeticOverflow, IncompatibleKinds, InvalidStep
from calrange.instant import CalendarDay, Instant, Timestamp
from calrange.util import DAY, INT64_MAX, checked

logger = logging.getLogger(__name__)

Temporal: TypeAlias = Instant | Duration


def estimate_steps(a: Temporal, b: Temporal, step: Duration) -> int:
    """Estimate how many ``step`` increments separate ``a`` from ``b``.

    Divides the raw difference (days for calendar days, milliseconds for
    timestamps, nominal milliseconds for durations) by the step's length in
    the same unit. The floating division can be off by a small amount near
    exact boundaries; :func:`exact_steps` corrects it.
    """
    step_millis = nominal_millis(step)
    if step_millis == 0:
        raise InvalidStep(f"Cannot count steps of {step}: the step is zero")

    match a, b:
        case CalendarDay(days=x), CalendarDay(days=y):
            return math.floor((y - x) / (step_millis / DAY))
        case Timestamp(millis=x), Timestamp(millis=y):
            return math.floor((y - x) / step_millis)
        case Duration(), Duration():
            return math.floor((nominal_millis(b) - nominal_millis(a)) / step_millis)
        case _:
            raise IncompatibleKinds(
                f"Cannot count steps between {type(a).__name__} "
                f"and {type(b).__name__}"
            )


def _reaches(lo: Temporal, stride: Duration, i: int, hi: Temporal) -> bool:
    """True if ``lo + stride * i`` lies at or before ``hi``.

    The position is compared as a plain integer, so a probe that would not fit
    in int64 reads as past ``hi`` instead of overflowing. ``i`` is never
    negative.
    """
    match lo, hi:
        case Instant(), Instant():
            try:
                return lo._offset(stride, i) <= hi.ordinal
            except ArithmeticOverflow:
                # Moved past the last supported date, so past any hi before it
                if split(stride)[0] > 0 and hi.ordinal <= hi._LAST_ORDINAL:
                    return False
                raise
        case Duration(), Duration():
            months, millis = split(lo)
            step_months, step_millis = split(stride)
            probe = nominal_key(months + step_months * i, millis + step_millis * i)
            return probe <= nominal_key(*split(hi))
        case _:
            raise IncompatibleKinds(
                f"Cannot count steps between {type(lo).__name__} "
                f"and {type(hi).__name__}"
            )


def exact_steps(a: Temporal, b: Temporal, step: Duration) -> int:
    """Count the whole steps from the smaller of ``a``/``b`` that stay within the larger.

    Only the magnitude of ``step`` matters. Starts just below the estimate and
    walks forward until the next step would pass the upper bound, so the cost
    does not grow with the size of the range.

    Raises:
        ArithmeticOverflow: If the count does not fit in int64
    """
    lo, hi, stride = min(a, b), max(a, b), abs(step)  # type: ignore[type-var]
    # Float rounding can push the estimate just past int64
    guess = min(estimate_steps(lo, hi, stride), INT64_MAX)

    i = max(guess - 1, 0)
    # Walk back if the estimate overshot
    while i > 0 and not _reaches(lo, stride, i, hi):
        i -= 1
    while _reaches(lo, stride, i, hi):
        i += 1
        checked(i - 1, "step count")

    count = i - 1
    if abs(count - guess) > 1:
        logger.debug(
            "Step estimate %d between %s and %s corrected to %d", guess, lo, hi, count
        )
    return count


def _integer_length(start: int, step: int, stop: int) -> int:
    """Length of the integer range ``start:step:stop`` with int64 overflow checks."""
    if start != stop and (step > 0) != (stop > start):
        return 0
    span = checked(stop - start, "range span")
    return checked(span // step + 1, "range length")


def _kind(value: object) -> tuple[type, str | None]:
    if isinstance(value, (Fixed, Calendar)):
        return type(value), value.unit
    return type(value), None


def _describe_kind(value: object) -> str:
    kind, unit = _kind(value)
    return f"{kind.__name__}({unit})" if unit else kind.__name__


def _validate(start: Any, step: Any, stop: Any) -> None:
    if not isinstance(step, Duration):
        raise TypeError(
            f"Range step must be a Duration, got {type(step).__name__!r}: {step!r}"
        )
    if step.is_zero:
        raise InvalidStep(
            f"Range step must be non-zero, got {step}.\n"
            f"A zero step never reaches stop, so the range would be infinite."
        )
    for edge, value in (("start", start), ("stop", stop)):
        if not isinstance(value, (Instant, Duration)):
            raise TypeError(
                f"Range {edge} must be an Instant or Duration, "
                f"got {type(value).__name__!r}: {value!r}"
            )
    if _kind(start) != _kind(stop):
        raise IncompatibleKinds(
            f"Range endpoints must be the same kind, got "
            f"{_describe_kind(start)} and {_describe_kind(stop)}.\n"
            f"Hint: make_range_with_step() promotes mixed durations to compound form"
        )

    match start, step:
        case _, Compound():
            raise IncompatibleKinds(
                f"Range step must be a bare duration, got compound {step}.\n"
                f"Hint: make_range_with_step() collapses compound steps"
            )
        case CalendarDay(), Fixed() if split(step)[1] % DAY:
            raise IncompatibleKinds(
                f"Cannot step calendar days by {step}; only whole days apply.\n"
                f"Hint: use Timestamp endpoints for sub-day steps"
            )
        case Timestamp(), Calendar():
            raise IncompatibleKinds(
                f"Cannot step timestamps by {step}: a {step.unit} has no fixed "
                f"length in milliseconds.\n"
                f"Hint: use CalendarDay endpoints for month or year steps"
            )
        case (Fixed() | Calendar()), _ if _kind(step) != _kind(start):
            raise IncompatibleKinds(
                f"Cannot step {_describe_kind(start)} endpoints by "
                f"{_describe_kind(step)}.\n"
                f"Hint: make_range_with_step() promotes the endpoints to compound form"
            )


@dataclass(frozen=True, kw_only=True)
class StridedRange:
    """Immutable progression ``start, start + step, ...`` bounded by ``stop``.

    ``stop`` is a bound, not necessarily an element; :attr:`last` is the last
    stride-aligned element. Supports ``len()``, indexing (negative indices
    count from the end), iteration, ``reversed()`` and ``in``.

    Build ranges with :func:`make_range` or :func:`make_range_with_step`,
    which normalize mixed kinds. Constructing directly only validates.

    Raises:
        InvalidStep: If ``step`` is zero
        IncompatibleKinds: If start, step and stop cannot be combined
    """

    start: Temporal
    step: Duration
    stop: Temporal

    def __post_init__(self) -> None:
        _validate(self.start, self.step, self.stop)

    def is_empty(self) -> bool:
        """True if ``start`` does not reach ``stop`` in the direction of ``step``."""
        return self.start != self.stop and (self.step.sign > 0) != (
            self.stop > self.start  # type: ignore[operator]
        )

    def length(self) -> int:
        match self.start, self.step, self.stop:
            case (Fixed(count=a), Fixed(count=s), Fixed(count=b)) | (
                Calendar(count=a),
                Calendar(count=s),
                Calendar(count=b),
            ):
                # Same-unit durations use integer arithmetic on their counts
                return _integer_length(a, s, b)
        if self.is_empty():
            return 0
        return checked(
            exact_steps(self.start, self.stop, self.step) + 1, "range length"
        )

    def __len__(self) -> int:
        return self.length()

    def __getitem__(self, index: int) -> Temporal:
        if isinstance(index, bool) or not isinstance(index, int):
            raise TypeError(
                f"StridedRange indices must be integers, got {type(index).__name__!r}"
            )
        size = len(self)
        position = index + size if index < 0 else index
        if not 0 <= position < size:
            raise IndexError(
                f"StridedRange index {index} out of range for length {size}"
            )
        return self.start + self.step * position  # type: ignore[operator]

    def __iter__(self) -> Iterator[Temporal]:
        for i in range(len(self)):
            yield self.start + self.step * i  # type: ignore[operator]

    def __reversed__(self) -> Iterator[Temporal]:
        for i in range(len(self) - 1, -1, -1):
            yield self.start + self.step * i  # type: ignore[operator]

    def __contains__(self, value: object) -> bool:
        if isinstance(value, (date, timedelta)):
            try:
                value = _coerce(value, "value")
            except (TypeError, ValueError):
                # Naive datetimes and sub-millisecond timedeltas match nothing
                return False
        if isinstance(self.start, Compound) and isinstance(value, (Fixed, Calendar)):
            value = compound(value)
        if _kind(value) != _kind(self.start):
            return False

        n = exact_steps(self.start, value, self.step) + 1  # type: ignore[arg-type]
        return 1 <= n <= len(self) and self[n - 1] == value

    def last_remainder(self) -> Duration:
        """Gap between ``stop`` and the last stride-aligned point before it."""
        steps = exact_steps(self.start, self.stop, self.step)
        aligned = self.start + self.step * steps  # type: ignore[operator]
        return self.stop - aligned  # type: ignore[operator,return-value]

    @property
    def first(self) -> Temporal:
        return self[0]

    @property
    def last(self) -> Temporal:
        """The last element, ``stop - last_remainder()``.

        Raises:
            IndexError: If the range is empty
        """
        if len(self) == 0:
            raise IndexError("Empty StridedRange has no last element")
        return self.stop - self.last_remainder()  # type: ignore[operator,return-value]

    def reverse(self) -> "StridedRange":
        """Return the same elements in the opposite order (``last:-step:first``)."""
        if len(self) == 0:
            return StridedRange(start=self.stop, step=-self.step, stop=self.start)
        return StridedRange(start=self.last, step=-self.step, stop=self.start)

    def __add__(self, other: object) -> "StridedRange":
        if not isinstance(other, Duration):
            return NotImplemented
        return StridedRange(
            start=self.start + other,  # type: ignore[operator]
            step=self.step,
            stop=self.stop + other,  # type: ignore[operator]
        )

    __radd__ = __add__

    def __sub__(self, other: object) -> "StridedRange":
        if not isinstance(other, Duration):
            return NotImplemented
        return self + (-other)

    def __str__(self) -> str:
        """Render as ``first:step:last``."""
        step = compound(self.step) if isinstance(self.start, Compound) else self.step
        end = self.stop if len(self) == 0 else self.last
        return f"{self.start}:{step}:{end}"


def _coerce(value: Any, edge: Literal["start", "step", "stop", "value"]) -> Any:
    """Convert standard-library temporal values to calrange values.

    Accepts:
    - Instant or Duration: Passed through as-is
    - datetime: Must be timezone-aware, converted to a Timestamp
    - date: Converted to a CalendarDay
    - timedelta: Converted to whole milliseconds

    Raises:
        TypeError: If value is an unsupported type or naive datetime
        ValueError: If a timedelta has sub-millisecond precision
    """
    if isinstance(value, (Instant, Duration)):
        return value
    if isinstance(value, datetime):
        return Timestamp.from_datetime(value)
    if isinstance(value, date):
        return CalendarDay.from_date(value)
    if isinstance(value, timedelta):
        count, rest = divmod(value, timedelta(milliseconds=1))
        if rest:
            raise ValueError(
                f"Range {edge} {value!r} has sub-millisecond precision.\n"
                f"Hint: round it to whole milliseconds first"
            )
        return milliseconds(count)
    raise TypeError(
        f"Range {edge} must be an Instant, Duration, date, datetime, or timedelta.\n"
        f"Got {type(value).__name__!r}: {value!r}\n"
        f"Examples:\n"
        f"  make_range(date(2025, 1, 1), date(2025, 1, 31))\n"
        f"  make_range_with_step(months(0), months(2), months(12))"
    )


def make_range(start: Any, stop: Any) -> StridedRange:
    """Build the range ``start:stop`` stepping one day."""
    return make_range_with_step(start, days(1), stop)


def make_range_with_step(start: Any, step: Any, stop: Any) -> StridedRange:
    """Build a normalized range ``start:step:stop``.

    Endpoints of different kinds (and bare duration endpoints whose unit
    differs from the step's) are promoted to compound form. A compound step is
    collapsed to milliseconds; its month and year parts use their nominal
    length, so such ranges only approximate calendar stepping.

    Example:
        >>> r = make_range_with_step(months(0), months(2), months(7))
        >>> len(r), months(6) in r, months(5) in r
        (4, True, False)
    """
    start = _coerce(start, "start")
    step = _coerce(step, "step")
    stop = _coerce(stop, "stop")

    if isinstance(step, Compound):
        collapsed = milliseconds(to_millis(step, nominal=True))
        logger.debug("Collapsed compound step %s to %s", step, collapsed)
        step = collapsed

    if isinstance(start, Duration) and isinstance(stop, Duration):
        kinds = {_kind(start), _kind(step), _kind(stop)}
        both_compound = isinstance(start, Compound) and isinstance(stop, Compound)
        if len(kinds) > 1 and not both_compound:
            logger.debug(
                "Promoting range endpoints %s and %s to compound form", start, stop
            )
            start, stop = compound(start), compound(stop)

    return StridedRange(start=start, step=step, stop=stop)


def length(r: StridedRange) -> int:
    return r.length()


def nth_element(r: StridedRange, i: int) -> Temporal:
    return r[i]


def contains(r: StridedRange, x: Any) -> bool:
    return x in r


def last_remainder(r: StridedRange) -> Duration:
    return r.last_remainder()
