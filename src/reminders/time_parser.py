# AI-chan - Discord Bot
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""
Time Parser Module

Parses the time expressions accepted by /remindme. Two grammars are tried
in order:

- durations relative to now: "1d 3h 10m", "23day", "35hrs 4min", "727secs"
- absolute UTC dates: "YYYY-MM-DD", "YYYY-MM-DD hh:mm", "YYYY-MM-DD hh:mm:ss"

All results are UTC and truncated to whole seconds.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional

import pytz

logger = logging.getLogger("aichan.reminders.time_parser")

# Unit spellings are case-sensitive
DURATION_UNITS = {
    "d": timedelta(days=1),
    "day": timedelta(days=1),
    "days": timedelta(days=1),
    "h": timedelta(hours=1),
    "hr": timedelta(hours=1),
    "hrs": timedelta(hours=1),
    "hour": timedelta(hours=1),
    "hours": timedelta(hours=1),
    "m": timedelta(minutes=1),
    "min": timedelta(minutes=1),
    "mins": timedelta(minutes=1),
    "minute": timedelta(minutes=1),
    "minutes": timedelta(minutes=1),
    "s": timedelta(seconds=1),
    "sec": timedelta(seconds=1),
    "secs": timedelta(seconds=1),
    "second": timedelta(seconds=1),
    "seconds": timedelta(seconds=1),
}

_LEADING_DIGITS = re.compile(r"[0-9]*")
_UNSIGNED = re.compile(r"\+?[0-9]+")
_SIGNED = re.compile(r"[+-]?[0-9]+")

# Date and time fields are 32-bit: years signed, everything else unsigned
_UNSIGNED_RANGE = (0, 2**32 - 1)
_SIGNED_RANGE = (-(2**31), 2**31 - 1)


class ParseErrorKind(Enum):
    """Why an absolute date expression was rejected."""

    UNRECOGNIZED_DATE_FORMAT = "unrecognized_date_format"
    UNRECOGNIZED_TIME_FORMAT = "unrecognized_time_format"

    PARSE_YEAR = "parse_year"
    PARSE_MONTH = "parse_month"
    PARSE_DAY = "parse_day"

    INVALID_DATE = "invalid_date"
    INVALID_MONTH = "invalid_month"
    INVALID_DAY = "invalid_day"

    PARSE_HOUR = "parse_hour"
    PARSE_MIN = "parse_min"
    PARSE_SEC = "parse_sec"

    INVALID_HOUR = "invalid_hour"
    INVALID_MIN = "invalid_min"
    INVALID_SEC = "invalid_sec"


@dataclass
class ParsedTime:
    """Result of parsing a time expression."""

    due_at: datetime  # UTC, whole seconds
    is_relative: bool  # True when the duration grammar matched
    original_input: str

    @property
    def timestamp(self) -> int:
        return int(self.due_at.timestamp())


class TimeParseError(Exception):
    """Raised when a time expression cannot be parsed."""

    pass


class DateTimeParseError(TimeParseError):
    """
    Raised when an absolute date expression is rejected.

    Attributes:
        kind: Which validation step failed
        cause: The underlying integer parse failure, for PARSE_* kinds
    """

    def __init__(self, kind: ParseErrorKind, cause: Optional[ValueError] = None):
        self.kind = kind
        self.cause = cause
        message = kind.value if cause is None else f"{kind.value}: {cause}"
        super().__init__(message)


def _parse_int(text: str, signed: bool = False) -> int:
    """Parse a plain decimal integer, rejecting whitespace, underscores and stray signs."""
    pattern = _SIGNED if signed else _UNSIGNED
    if not text:
        raise ValueError("cannot parse integer from empty string")
    if not pattern.fullmatch(text):
        raise ValueError(f"invalid digit found in string: {text!r}")

    low, high = _SIGNED_RANGE if signed else _UNSIGNED_RANGE
    # Longer than the bound itself, no need to convert
    too_long = len(text.lstrip("+-").lstrip("0")) > len(str(high))
    value = None if too_long else int(text)
    if text.startswith("-") and (too_long or value < low):
        raise ValueError("number too small to fit in target type")
    if too_long or value > high:
        raise ValueError("number too large to fit in target type")
    return value


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(pytz.UTC)


def truncate_to_second(dt: datetime) -> datetime:
    return dt.replace(microsecond=0)


def parse_time_delta(now: datetime, text: str) -> Optional[datetime]:
    """
    Parse a relative duration such as "1d 3h 10m".

    Each space-separated token is a number immediately followed by a unit.
    Any malformed token fails the whole expression.

    Args:
        now: Reference time (aware UTC)
        text: User input

    Returns:
        now + total duration, or None if the input is not a duration
    """
    total = timedelta(0)

    for part in text.strip().split(" "):
        part = part.strip()
        if not part:
            continue

        digits = _LEADING_DIGITS.match(part).group(0)
        if not digits:
            return None

        unit = DURATION_UNITS.get(part[len(digits):].strip())
        if unit is None:
            return None

        try:
            total += unit * int(digits)
        except OverflowError:
            return None

    try:
        return now + total
    except OverflowError:
        return None


def _parse_time_of_day(text: str) -> time:
    """Parse "hh:mm" or "hh:mm:ss" with range checks."""
    fields = text.strip().split(":")
    if len(fields) == 3:
        hour_str, min_str, sec_str = fields
    elif len(fields) == 2:
        hour_str, min_str = fields
        sec_str = "0"
    else:
        raise DateTimeParseError(ParseErrorKind.UNRECOGNIZED_TIME_FORMAT)

    try:
        hour = _parse_int(hour_str)
    except ValueError as e:
        raise DateTimeParseError(ParseErrorKind.PARSE_HOUR, e) from e
    try:
        minute = _parse_int(min_str)
    except ValueError as e:
        raise DateTimeParseError(ParseErrorKind.PARSE_MIN, e) from e
    try:
        second = _parse_int(sec_str)
    except ValueError as e:
        raise DateTimeParseError(ParseErrorKind.PARSE_SEC, e) from e

    if hour >= 24:
        raise DateTimeParseError(ParseErrorKind.INVALID_HOUR)
    if minute >= 60:
        raise DateTimeParseError(ParseErrorKind.INVALID_MIN)
    if second >= 60:
        raise DateTimeParseError(ParseErrorKind.INVALID_SEC)

    return time(hour, minute, second)


def _parse_date(text: str) -> date:
    """Parse "YYYY-MM-DD" with range checks."""
    fields = text.split("-")
    if len(fields) != 3:
        raise DateTimeParseError(ParseErrorKind.UNRECOGNIZED_DATE_FORMAT)
    year_str, month_str, day_str = fields

    try:
        year = _parse_int(year_str, signed=True)
    except ValueError as e:
        raise DateTimeParseError(ParseErrorKind.PARSE_YEAR, e) from e
    try:
        month = _parse_int(month_str)
    except ValueError as e:
        raise DateTimeParseError(ParseErrorKind.PARSE_MONTH, e) from e
    try:
        day = _parse_int(day_str)
    except ValueError as e:
        raise DateTimeParseError(ParseErrorKind.PARSE_DAY, e) from e

    if month > 12:
        raise DateTimeParseError(ParseErrorKind.INVALID_MONTH)
    if day > 31:
        raise DateTimeParseError(ParseErrorKind.INVALID_DAY)

    try:
        return date(year, month, day)
    except (ValueError, OverflowError):
        # Feb 30, month/day 0, or a year datetime cannot represent
        raise DateTimeParseError(ParseErrorKind.INVALID_DATE) from None


def parse_date_time(now: datetime, text: str) -> datetime:
    """
    Parse an absolute UTC date, optionally followed by a time of day.

    When no time is given, the current UTC time of day is used.

    Args:
        now: Reference time (aware UTC)
        text: User input

    Returns:
        Aware UTC datetime

    Raises:
        DateTimeParseError: With the kind of the first failed check
    """
    text = text.strip()

    if " " in text:
        date_part, time_part = text.split(" ", 1)
        time_of_day = _parse_time_of_day(time_part)
        day = _parse_date(date_part.strip())
    else:
        time_of_day = now.astimezone(pytz.UTC).time().replace(tzinfo=None)
        day = _parse_date(text)

    return pytz.UTC.localize(datetime.combine(day, time_of_day))


def parse_time_expression(now: datetime, text: str) -> ParsedTime:
    """
    Parse a /remindme time expression.

    The duration grammar wins when both could apply. The caller still has
    to check that the result lies in the future.

    Args:
        now: Reference time (aware UTC)
        text: User input

    Returns:
        ParsedTime with the due time

    Raises:
        DateTimeParseError: If neither grammar accepts the input
    """
    due_at = parse_time_delta(now, text)
    if due_at is not None:
        return ParsedTime(
            due_at=truncate_to_second(due_at),
            is_relative=True,
            original_input=text,
        )

    due_at = parse_date_time(now, text)
    return ParsedTime(
        due_at=truncate_to_second(due_at),
        is_relative=False,
        original_input=text,
    )


def is_in_future(now: datetime, parsed: ParsedTime) -> bool:
    """True if the parsed time is strictly after now, at second granularity."""
    return parsed.timestamp > int(now.timestamp())
