"""Business number formatting: ``PREFIX-YYYY-NNN`` (e.g. ``REQ-2025-006``)."""

import re
from dataclasses import dataclass

_NUMBER_RE = re.compile(r"^(?P<prefix>[A-Z]+)-(?P<year>\d{4})-(?P<value>\d+)$")


@dataclass(frozen=True)
class BusinessNumber:
    prefix: str
    year: int
    value: int

    def format(self, width: int = 3) -> str:
        return format_business_number(self.prefix, self.year, self.value, width)


def format_business_number(prefix: str, year: int, value: int, width: int = 3) -> str:
    """
    Render a business number.  ``value`` is zero-padded to ``width`` digits
    and simply grows past it (``REQ-2025-1000``).
    """
    if value < 1:
        raise ValueError(f"Business number value must be positive, got {value}")
    return f"{prefix}-{year:04d}-{value:0{width}d}"


def parse_business_number(number: str) -> BusinessNumber:
    match = _NUMBER_RE.match(number)
    if match is None:
        raise ValueError(f"Not a business number: {number!r}")
    return BusinessNumber(
        prefix=match.group("prefix"),
        year=int(match.group("year")),
        value=int(match.group("value")),
    )


def counter_name(prefix: str, year: int) -> str:
    """Name of the sequence counter backing ``prefix`` numbers for ``year``."""
    return f"{prefix}-{year:04d}"
