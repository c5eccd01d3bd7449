"""Tests for strided temporal ranges."""

import logging
from dataclasses import FrozenInstanceError
from datetime import date, datetime, timedelta, timezone

import pytest

from calrange import (
    ArithmeticOverflow,
    CalendarDay,
    Compound,
    IncompatibleKinds,
    InvalidStep,
    StridedRange,
    Timestamp,
    compound,
    contains,
    days,
    estimate_steps,
    exact_steps,
    hours,
    last_remainder,
    length,
    make_range,
    make_range_with_step,
    milliseconds,
    minutes,
    months,
    nth_element,
    weeks,
)
from calrange.util import INT64_MAX, INT64_MIN, NOMINAL_MONTH

NEW_YEAR = Timestamp.from_datetime(datetime(2025, 1, 1, tzinfo=timezone.utc))


def day_range() -> StridedRange:
    return make_range_with_step(CalendarDay(days=0), days(3), CalendarDay(days=10))


def sample_ranges() -> list[StridedRange]:
    """Ranges over each kind of endpoint, in both directions."""
    return [
        day_range(),
        make_range_with_step(CalendarDay(days=10), days(-3), CalendarDay(days=0)),
        make_range_with_step(NEW_YEAR, hours(2), NEW_YEAR + hours(10) + minutes(30)),
        make_range_with_step(NEW_YEAR, minutes(-45), NEW_YEAR - hours(5)),
        make_range_with_step(months(0), months(2), months(7)),
        make_range_with_step(milliseconds(100), milliseconds(-7), milliseconds(0)),
        make_range_with_step(months(1), days(1), compound(months(1), days(10))),
        make_range_with_step(date(2025, 1, 31), months(1), date(2025, 5, 31)),
    ]


def test_day_range_length_and_remainder():
    """Days 0..10 by 3 holds 0, 3, 6, 9 and leaves one day over."""
    r = day_range()

    assert len(r) == 4
    assert length(r) == 4
    assert list(r) == [CalendarDay(days=d) for d in (0, 3, 6, 9)]
    assert r.last_remainder() == days(1)
    assert last_remainder(r) == days(1)
    assert r.last == CalendarDay(days=9)
    assert r.first == CalendarDay(days=0)


def test_month_range_length_and_membership():
    r = make_range_with_step(months(0), months(2), months(7))

    assert len(r) == 4
    assert list(r) == [months(0), months(2), months(4), months(6)]
    assert contains(r, months(6))
    assert not contains(r, months(5))
    assert months(0) in r
    assert months(8) not in r
    assert r.last_remainder() == months(1)


def test_zero_step_is_rejected():
    with pytest.raises(InvalidStep, match="non-zero"):
        make_range_with_step(Timestamp(millis=0), milliseconds(0), Timestamp(millis=10))

    with pytest.raises(InvalidStep):
        StridedRange(start=days(0), step=days(0), stop=days(5))

    # A compound step that nets to nothing is zero too
    with pytest.raises(InvalidStep):
        make_range_with_step(NEW_YEAR, compound(hours(1), minutes(-60)), NEW_YEAR)


@pytest.mark.parametrize("r", sample_ranges(), ids=str)
def test_last_index_is_last_element(r: StridedRange):
    size = len(r)

    assert size > 0
    assert nth_element(r, size - 1) == r.last
    assert r[-1] == r.last
    assert r[-size] == r.first == r.start

    with pytest.raises(IndexError):
        nth_element(r, size)

    with pytest.raises(IndexError):
        r[-size - 1]


@pytest.mark.parametrize("r", sample_ranges(), ids=str)
def test_every_element_is_contained(r: StridedRange):
    for i in range(len(r)):
        assert contains(r, r[i])


@pytest.mark.parametrize("r", sample_ranges(), ids=str)
def test_remainder_identity(r: StridedRange):
    steps = exact_steps(r.start, r.stop, r.step)

    assert r.start + r.step * steps + r.last_remainder() == r.stop
    assert r.stop - r.last_remainder() == r.last


def test_unaligned_values_are_not_contained():
    r = day_range()

    for d in (1, 2, 4, 5, 7, 8, 10):
        assert CalendarDay(days=d) not in r

    # Aligned with the stride but outside the bounds
    assert CalendarDay(days=-3) not in r
    assert CalendarDay(days=12) not in r


def test_values_of_other_kinds_are_not_contained():
    r = day_range()

    assert Timestamp(millis=0) not in r
    assert days(3) not in r
    assert "2025-01-01" not in r


def test_unconvertible_standard_library_values_are_not_contained():
    """Membership answers False where a builder would raise."""
    r = day_range()
    assert datetime(1970, 1, 1) not in r
    assert not contains(r, datetime(1970, 1, 4))

    spans = make_range_with_step(milliseconds(0), milliseconds(1), milliseconds(10))
    assert timedelta(microseconds=1500) not in spans
    assert timedelta(milliseconds=2) in spans


def test_contains_accepts_standard_library_values():
    r = make_range(date(2025, 1, 1), date(2025, 1, 31))

    assert date(2025, 1, 15) in r
    assert date(2025, 2, 1) not in r

    stamps = make_range_with_step(NEW_YEAR, hours(1), NEW_YEAR + days(1))
    assert datetime(2025, 1, 1, 5, tzinfo=timezone.utc) in stamps
    assert datetime(2025, 1, 1, 5, 30, tzinfo=timezone.utc) not in stamps


@pytest.mark.parametrize(
    "r",
    [
        day_range(),
        make_range_with_step(NEW_YEAR, hours(2), NEW_YEAR + hours(10) + minutes(30)),
        make_range_with_step(months(0), months(2), months(7)),
        make_range_with_step(milliseconds(100), milliseconds(-7), milliseconds(0)),
        make_range_with_step(months(1), days(1), compound(months(1), days(10))),
    ],
    ids=str,
)
def test_reversed_range_has_same_elements(r: StridedRange):
    back = r.reverse()

    assert len(back) == len(r)
    assert list(back) == list(r)[::-1]
    assert list(reversed(r)) == list(r)[::-1]
    assert back.step == -r.step


@pytest.mark.parametrize(
    "r, shift",
    [
        (day_range(), days(7)),
        (day_range(), weeks(-1)),
        (make_range_with_step(NEW_YEAR, hours(2), NEW_YEAR + hours(11)), days(1)),
        (make_range_with_step(months(0), months(2), months(7)), months(3)),
        (make_range_with_step(months(0), months(2), months(7)), days(1)),
        (make_range_with_step(days(0), days(1), days(4)), hours(6)),
    ],
)
def test_shift_preserves_length_and_offsets_elements(r: StridedRange, shift):
    moved = r + shift

    assert len(moved) == len(r)
    assert moved.step == r.step
    for i in range(len(r)):
        assert moved[i] == r[i] + shift

    assert shift + r == moved
    assert list(r - shift) == [element - shift for element in r]


def test_shift_by_another_unit_promotes_to_compound():
    moved = make_range_with_step(days(0), days(1), days(4)) + hours(6)

    assert isinstance(moved.start, Compound)
    assert str(moved) == "6 hours:1 day:4 days, 6 hours"


def test_shift_overflow():
    r = make_range_with_step(Timestamp(millis=0), milliseconds(1), Timestamp(millis=INT64_MAX))

    with pytest.raises(ArithmeticOverflow):
        r + milliseconds(1)


def test_shift_incompatible_with_calendar_days():
    with pytest.raises(IncompatibleKinds):
        day_range() + hours(1)


def test_empty_ranges():
    backwards = make_range(CalendarDay(days=5), CalendarDay(days=0))

    assert backwards.is_empty()
    assert len(backwards) == 0
    assert not backwards
    assert list(backwards) == []
    assert CalendarDay(days=3) not in backwards
    with pytest.raises(IndexError):
        backwards.last
    with pytest.raises(IndexError):
        backwards[0]

    assert len(make_range_with_step(months(7), months(2), months(0))) == 0
    assert len(backwards.reverse()) == 0


def test_single_element_range():
    r = make_range(CalendarDay(days=4), CalendarDay(days=4))

    assert not r.is_empty()
    assert list(r) == [CalendarDay(days=4)]
    assert r.last_remainder() == days(0)


def test_two_argument_form_steps_one_day():
    r = make_range(date(2025, 1, 1), date(2025, 1, 31))

    assert r.step == days(1)
    assert len(r) == 31
    assert r[30] == CalendarDay.from_date(date(2025, 1, 31))

    stamps = make_range(NEW_YEAR, NEW_YEAR + days(2) + hours(3))
    assert len(stamps) == 3
    assert stamps.last_remainder() == hours(3)

    durations = make_range(days(0), days(6))
    assert len(durations) == 7


def test_month_steps_on_calendar_days_follow_the_calendar():
    r = make_range_with_step(date(2025, 1, 31), months(1), date(2025, 5, 31))

    assert [d.to_date() for d in r] == [
        date(2025, 1, 31),
        date(2025, 2, 28),
        date(2025, 3, 31),
        date(2025, 4, 30),
        date(2025, 5, 31),
    ]
    assert date(2025, 2, 28) in r
    assert date(2025, 2, 27) not in r


def test_long_month_range_counts_exactly():
    """Two centuries of months: the nominal estimate is corrected exactly."""
    r = make_range_with_step(date(1900, 1, 31), months(1), date(2100, 1, 31))

    assert len(r) == 2401
    assert r.last == CalendarDay.from_date(date(2100, 1, 31))
    assert r.last_remainder() == days(0)


def test_timestamp_range_with_hour_step():
    stop = NEW_YEAR + hours(10) + minutes(30)
    r = make_range_with_step(NEW_YEAR, hours(2), stop)

    assert len(r) == 6
    assert r.last == NEW_YEAR + hours(10)
    assert r.last_remainder() == minutes(30)
    assert NEW_YEAR + hours(4) in r
    assert NEW_YEAR + hours(5) not in r


def test_huge_range_length_is_computed_without_scanning():
    r = make_range_with_step(Timestamp(millis=0), milliseconds(7), Timestamp(millis=10**15))

    assert len(r) == 10**15 // 7 + 1
    assert Timestamp(millis=7 * 10**12) in r
    assert Timestamp(millis=7 * 10**12 + 1) not in r

    wide = make_range_with_step(
        Timestamp(millis=-(2**61)), milliseconds(3), Timestamp(millis=2**61 + 12345)
    )
    assert len(wide) == (2**62 + 12345) // 3 + 1


def test_estimate_is_close_to_exact():
    pairs = [
        (CalendarDay(days=0), CalendarDay(days=10), days(3)),
        (NEW_YEAR, NEW_YEAR + days(365), hours(7)),
        (months(0), months(100), months(3)),
        (CalendarDay(days=0), CalendarDay(days=3650), months(1)),
    ]
    for a, b, step in pairs:
        assert abs(estimate_steps(a, b, step) - exact_steps(a, b, step)) <= 1


def test_exact_steps_ignores_direction():
    a, b = CalendarDay(days=2), CalendarDay(days=20)

    assert exact_steps(a, b, days(4)) == 4
    assert exact_steps(b, a, days(4)) == 4
    assert exact_steps(a, b, days(-4)) == 4
    assert exact_steps(a, a, days(4)) == 0


def test_integer_length_overflow():
    """Same-unit duration ranges inherit int64 overflow checks."""
    whole_axis = make_range_with_step(
        milliseconds(INT64_MIN), milliseconds(1), milliseconds(INT64_MAX)
    )
    with pytest.raises(ArithmeticOverflow):
        len(whole_axis)

    too_long = make_range_with_step(months(0), months(1), months(INT64_MAX))
    with pytest.raises(ArithmeticOverflow):
        len(too_long)

    fits = make_range_with_step(months(0), months(1), months(INT64_MAX - 1))
    assert len(fits) == INT64_MAX
    assert fits.last == months(INT64_MAX - 1)
    assert fits.last_remainder() == months(0)
    assert months(INT64_MAX - 1) in fits
    assert fits[-1] == months(INT64_MAX - 1)


def test_timestamp_length_overflow():
    r = make_range_with_step(
        Timestamp(millis=INT64_MIN), milliseconds(1), Timestamp(millis=INT64_MAX)
    )

    with pytest.raises(ArithmeticOverflow):
        len(r)


def test_ranges_ending_at_the_int64_limit():
    """The step past the last element may leave int64 without raising."""
    edge = make_range_with_step(
        Timestamp(millis=0), milliseconds(10**18), Timestamp(millis=INT64_MAX)
    )
    assert len(edge) == 10
    assert edge.last == Timestamp(millis=9 * 10**18)
    assert edge.last_remainder() == milliseconds(INT64_MAX - 9 * 10**18)

    tail = make_range_with_step(
        Timestamp(millis=INT64_MAX - 10), milliseconds(5), Timestamp(millis=INT64_MAX)
    )
    assert len(tail) == 3
    assert list(tail)[-1] == Timestamp(millis=INT64_MAX)
    assert Timestamp(millis=INT64_MAX) in tail
    assert Timestamp(millis=INT64_MAX - 1) not in tail
    assert tail.last_remainder() == milliseconds(0)


def test_month_steps_stop_at_the_last_supported_date():
    r = make_range_with_step(date(9999, 1, 31), months(1), date(9999, 12, 31))

    assert len(r) == 12
    assert r.last == CalendarDay.from_date(date(9999, 12, 31))
    assert r.last_remainder() == days(0)


def test_mixed_duration_endpoints_are_promoted():
    r = make_range_with_step(days(0), hours(1), days(2))

    assert isinstance(r.start, Compound)
    assert isinstance(r.stop, Compound)
    assert len(r) == 49
    assert r[0] == days(0)
    assert hours(5) in r
    assert minutes(90) not in r


def test_compound_endpoint_range():
    r = make_range_with_step(months(1), days(1), compound(months(1), days(10)))

    assert len(r) == 11
    assert r[3] == compound(months(1), days(3))
    assert months(1) in r
    assert compound(months(1), days(10)) in r
    assert compound(months(2)) not in r
    assert str(r) == "1 month:1 day:1 month, 10 days"


def test_compound_step_of_whole_days_on_calendar_days():
    r = make_range_with_step(CalendarDay(days=0), compound(weeks(1), days(2)), CalendarDay(days=30))

    assert r.step == days(9)
    assert list(r) == [CalendarDay(days=d) for d in (0, 9, 18, 27)]


def test_compound_step_with_months_is_nominal_approximation():
    """Known approximate: a month inside a compound step counts as 30.436875 days.

    Stride points drift away from calendar month boundaries, so only the
    nominal spacing is asserted here.
    """
    stop = Timestamp.from_datetime(datetime(2025, 12, 31, tzinfo=timezone.utc))
    r = make_range_with_step(NEW_YEAR, compound(months(1)), stop)

    assert r.step == milliseconds(NOMINAL_MONTH)
    assert len(r) == 12
    assert r[1] == NEW_YEAR + milliseconds(NOMINAL_MONTH)
    assert r[1] != NEW_YEAR + months(1)


def test_incompatible_kinds_are_rejected():
    with pytest.raises(IncompatibleKinds, match="only whole days apply"):
        make_range_with_step(CalendarDay(days=0), hours(1), CalendarDay(days=3))

    with pytest.raises(IncompatibleKinds, match="no fixed length"):
        make_range_with_step(Timestamp(millis=0), months(1), Timestamp(millis=10**10))

    with pytest.raises(IncompatibleKinds, match="same kind"):
        make_range_with_step(CalendarDay(days=0), days(1), Timestamp(millis=0))

    with pytest.raises(IncompatibleKinds, match="same kind"):
        make_range(CalendarDay(days=0), days(3))

    # A compound step of a month is not a whole number of days
    with pytest.raises(IncompatibleKinds):
        make_range_with_step(CalendarDay(days=0), compound(months(1)), CalendarDay(days=90))


def test_direct_construction_only_validates():
    with pytest.raises(IncompatibleKinds, match="promotes the endpoints"):
        StridedRange(start=days(0), step=hours(1), stop=days(2))

    with pytest.raises(IncompatibleKinds, match="bare duration"):
        StridedRange(start=NEW_YEAR, step=compound(days(1), hours(1)), stop=NEW_YEAR)

    with pytest.raises(TypeError, match="must be a Duration"):
        StridedRange(start=days(0), step=3, stop=days(2))  # type: ignore[arg-type]


def test_builders_accept_standard_library_values():
    r = make_range_with_step(timedelta(0), timedelta(hours=1), timedelta(hours=5))
    assert len(r) == 6
    assert r.last == hours(5)

    stamps = make_range(
        datetime(2025, 1, 1, tzinfo=timezone.utc), datetime(2025, 1, 3, tzinfo=timezone.utc)
    )
    assert stamps.start == NEW_YEAR
    assert len(stamps) == 3

    with pytest.raises(TypeError, match="timezone-aware"):
        make_range(datetime(2025, 1, 1), datetime(2025, 1, 3))

    with pytest.raises(ValueError, match="sub-millisecond"):
        make_range_with_step(timedelta(0), timedelta(microseconds=1500), timedelta(1))

    with pytest.raises(TypeError, match="must be an Instant, Duration"):
        make_range("2025-01-01", "2025-01-31")


def test_text_form():
    r = make_range_with_step(
        CalendarDay.from_date(date(2025, 1, 1)), days(3), CalendarDay.from_date(date(2025, 1, 11))
    )
    assert str(r) == "2025-01-01:3 days:2025-01-10"

    empty = make_range(CalendarDay(days=1), CalendarDay(days=0))
    assert str(empty) == "1970-01-02:1 day:1970-01-01"


def test_ranges_are_immutable_values():
    r = day_range()

    with pytest.raises(FrozenInstanceError):
        r.start = CalendarDay(days=1)  # type: ignore[misc]

    assert r == day_range()
    assert hash(r) == hash(day_range())
    assert list(r) == list(r)


def test_builder_logs_normalization(caplog):
    with caplog.at_level(logging.DEBUG, logger="calrange.core"):
        make_range_with_step(days(0), compound(hours(1), minutes(30)), days(2))

    assert "Collapsed compound step" in caplog.text
    assert "Promoting range endpoints" in caplog.text
