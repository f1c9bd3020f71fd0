"""Timeframe parameter grammar and date-window resolution."""

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from dateutil.relativedelta import relativedelta

from trends_explorer.errors import UserInputError

ALL_TIME = "all"
"""Literal timeframe covering the whole Google Trends history."""

ALL_TIME_START: date = date(2004, 1, 1)

DEFAULT_TIMEFRAME = "today 12-m"

_PATTERN = re.compile(r"^(now|today) ([1-9][0-9]*)-([Hdmy])$")

# Units each anchor accepts: "now" windows are hours or days, "today"
# windows are months or years.
_UNITS = {
    "now": {"H": "hours", "d": "days"},
    "today": {"m": "months", "y": "years"},
}


@dataclass(frozen=True)
class Timeframe:
    """A parsed ``timeframe`` parameter.

    Stores a ``relativedelta`` offset and resolves the window start from
    the supplied (or current) date on every call, so a long-lived value
    never goes stale.

    Example::

        tf = parse_timeframe("today 3-m")
        tf.start_date(date(2024, 6, 15))  # date(2024, 3, 15)
    """

    raw: str
    delta: Optional[relativedelta] = None

    @property
    def is_all_time(self) -> bool:
        return self.delta is None

    def start_date(self, today: Optional[date] = None) -> date:
        """Return the first date covered by the window.

        Args:
            today: Reference date; defaults to ``date.today()``.
        """
        if self.delta is None:
            return ALL_TIME_START
        start = (today or date.today()) - self.delta
        # Hour offsets turn the date into a datetime.
        return start.date() if isinstance(start, datetime) else start

    def __str__(self) -> str:
        return self.raw


def parse_timeframe(raw: str) -> Timeframe:
    """Validate a timeframe string and parse it.

    Accepted forms are ``now N-H``, ``now N-d``, ``today N-m``,
    ``today N-y`` and the literal ``all``.

    Raises:
        UserInputError: If *raw* does not match the grammar.
    """
    text = (raw or "").strip()
    if text == ALL_TIME:
        return Timeframe(raw=text)

    match = _PATTERN.match(text)
    unit = match and _UNITS[match.group(1)].get(match.group(3))
    if not unit:
        raise UserInputError(
            f"Invalid timeframe {raw!r}: expected 'now N-H', 'now N-d', "
            f"'today N-m', 'today N-y' or 'all'"
        )
    return Timeframe(raw=text,
                     delta=relativedelta(**{unit: int(match.group(2))}))
