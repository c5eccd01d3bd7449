"""Exception hierarchy for calrange.

Each error kind also derives from the built-in exception callers would
expect, so ``except ValueError`` and friends keep working.
"""


class CalrangeError(Exception):
    """Base exception for all calrange errors."""


class InvalidStep(CalrangeError, ValueError):
    """A range was requested with a zero step."""


class IncompatibleKinds(CalrangeError, TypeError):
    """Temporal values that cannot be combined, compared or normalized.

    Examples:
        - A calendar day range stepped by hours
        - A timestamp range stepped by months
        - Ordering a bare month against a bare day
    """


class ArithmeticOverflow(CalrangeError, OverflowError):
    """A result left the signed 64-bit range or the supported calendar."""


__all__ = [
    "CalrangeError",
    "InvalidStep",
    "IncompatibleKinds",
    "ArithmeticOverflow",
]
