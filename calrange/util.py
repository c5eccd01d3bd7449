"""Utility constants and helpers for calrange.

Fixed-ratio unit constants represent durations in milliseconds.
Calendar-relative units have no exact length; the nominal values are the
mean Gregorian lengths and are only used for estimates.
"""

from calrange.errors import ArithmeticOverflow

# Fixed-ratio units (all values in milliseconds)
MILLISECOND = 1
SECOND = 1000
MINUTE = 60000
HOUR = 3600000
DAY = 86400000
WEEK = 604800000

# Nominal month (30.436875 days, a twelfth of the 365.2425-day mean year)
NOMINAL_MONTH = 2629746000

# Every count, day number and millisecond number is held to int64
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def checked(value: int, what: str = "value") -> int:
    """Return ``value`` unchanged, or raise if it does not fit in int64."""
    if not INT64_MIN <= value <= INT64_MAX:
        raise ArithmeticOverflow(
            f"{what} {value} is outside the signed 64-bit range.\n"
            f"Valid range: {INT64_MIN} to {INT64_MAX}"
        )
    return value
