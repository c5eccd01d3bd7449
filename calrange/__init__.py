import logging
from importlib.resources import files

from .core import (
    StridedRange,
    contains,
    estimate_steps,
    exact_steps,
    last_remainder,
    length,
    make_range,
    make_range_with_step,
    nth_element,
)
from .duration import (
    Calendar,
    Compound,
    Duration,
    Fixed,
    compound,
    days,
    hours,
    milliseconds,
    minutes,
    months,
    seconds,
    to_millis,
    weeks,
    years,
)
from .errors import ArithmeticOverflow, CalrangeError, IncompatibleKinds, InvalidStep
from .instant import CalendarDay, Instant, Timestamp

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Load documentation files for programmatic access by agents and code-aware tools
_docs_path = files(__package__) / "docs"
docs = {
    "readme": (_docs_path / "README.md").read_text(),
    "api": (_docs_path / "API.md").read_text(),
}

__all__ = [
    "StridedRange",
    "make_range",
    "make_range_with_step",
    "length",
    "nth_element",
    "contains",
    "last_remainder",
    "estimate_steps",
    "exact_steps",
    "Instant",
    "CalendarDay",
    "Timestamp",
    "Duration",
    "Fixed",
    "Calendar",
    "Compound",
    "compound",
    "to_millis",
    "milliseconds",
    "seconds",
    "minutes",
    "hours",
    "days",
    "weeks",
    "months",
    "years",
    "CalrangeError",
    "InvalidStep",
    "IncompatibleKinds",
    "ArithmeticOverflow",
    "docs",
]
