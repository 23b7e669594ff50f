"""Date/time tool — current time, formatting, arithmetic, differences."""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone, tzinfo
from typing import ClassVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from reloop.tool.base import BaseTool, ToolParameter
from reloop.tool.value import Arguments

DEFAULT_FORMAT = "%Y-%m-%d %H:%M:%S"

_UNITS = ("seconds", "minutes", "hours", "days", "months", "years")


def parse_iso(value: str) -> datetime:
    """Parse an ISO 8601 string. Naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError as e:
        raise ValueError(f"Invalid date format (expected ISO 8601): {value}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def resolve_timezone(name: str | None) -> tzinfo | None:
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Invalid timezone: {name}") from e


def add_months(value: datetime, months: int) -> datetime:
    """Shift by whole months, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def add_time(value: datetime, amount: int, unit: str) -> datetime:
    if unit == "months":
        return add_months(value, amount)
    if unit == "years":
        return add_months(value, amount * 12)
    if unit not in _UNITS:
        raise ValueError(f"Unsupported time unit: {unit}")
    return value + timedelta(**{unit: amount})


def difference(start: datetime, end: datetime) -> dict[str, int]:
    """Calendar-aware difference broken into years..seconds.

    All components share the sign of ``end - start``.
    """
    sign = 1
    if end < start:
        start, end = end, start
        sign = -1

    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and add_months(start, months) > end:
        months -= 1
    remainder = end - add_months(start, months)
    hours, rest = divmod(remainder.seconds, 3600)
    minutes, seconds = divmod(rest, 60)

    return {
        "years": sign * (months // 12),
        "months": sign * (months % 12),
        "days": sign * remainder.days,
        "hours": sign * hours,
        "minutes": sign * minutes,
        "seconds": sign * seconds,
        "total_seconds": sign * int((end - start).total_seconds()),
    }


class DateTimeTool(BaseTool):
    """Get and manipulate dates and times."""

    name: ClassVar[str] = "datetime"
    description: ClassVar[str] = (
        "Get and process date/time information: the current time, "
        "formatting a date, adding an amount of time, or the difference "
        "between two dates. Dates are ISO 8601 strings."
    )
    parameters: ClassVar[tuple[ToolParameter, ...]] = (
        ToolParameter(
            name="action",
            type="string",
            description=(
                "Operation: 'current' (current time), 'format' (format a date), "
                "'add' (add time), 'diff' (difference between dates)"
            ),
            enum_values=("current", "format", "add", "diff"),
        ),
        ToolParameter(
            name="date",
            type="string",
            description="ISO 8601 date (for format/add/diff)",
            required=False,
        ),
        ToolParameter(
            name="format",
            type="string",
            description=f"strftime format string (for format), default '{DEFAULT_FORMAT}'",
            required=False,
        ),
        ToolParameter(
            name="amount",
            type="number",
            description="Amount of time to add (for add)",
            required=False,
        ),
        ToolParameter(
            name="unit",
            type="string",
            description="Time unit (for add)",
            required=False,
            enum_values=_UNITS,
        ),
        ToolParameter(
            name="to_date",
            type="string",
            description="Target ISO 8601 date (for diff)",
            required=False,
        ),
        ToolParameter(
            name="timezone",
            type="string",
            description="IANA timezone, e.g. 'Asia/Shanghai', 'America/New_York'",
            required=False,
        ),
    )

    def __init__(self, clock: type[datetime] = datetime) -> None:
        self._clock = clock

    async def execute(self, arguments: Arguments) -> str:
        action = arguments["action"]
        if action == "current":
            return self._current(_opt_str(arguments, "timezone"))
        if action == "format":
            return self._format(
                _opt_str(arguments, "date"),
                _opt_str(arguments, "format"),
                _opt_str(arguments, "timezone"),
            )
        if action == "add":
            return self._add(
                _opt_str(arguments, "date"),
                arguments.get("amount"),
                _opt_str(arguments, "unit"),
            )
        if action == "diff":
            return self._diff(
                _opt_str(arguments, "date"), _opt_str(arguments, "to_date")
            )
        raise ValueError(f"Unsupported action: {action}")

    def _now(self) -> datetime:
        return self._clock.now(timezone.utc)

    def _current(self, tz_name: str | None) -> str:
        tz = resolve_timezone(tz_name)
        now = self._now()
        local = now.astimezone(tz) if tz is not None else now
        return "\n".join(
            [
                "Current time:",
                f"- Formatted: {local.strftime(DEFAULT_FORMAT)}",
                f"- Timezone: {tz_name or local.tzname()}",
                f"- ISO 8601: {local.isoformat()}",
                f"- Unix timestamp: {int(now.timestamp())}",
            ]
        )

    def _format(self, date: str | None, fmt: str | None, tz_name: str | None) -> str:
        if date is None:
            raise ValueError("'date' is required for the 'format' action")
        value = parse_iso(date)
        tz = resolve_timezone(tz_name)
        if tz is not None:
            value = value.astimezone(tz)
        return value.strftime(fmt or DEFAULT_FORMAT)

    def _add(self, date: str | None, amount: object, unit: str | None) -> str:
        start = parse_iso(date) if date is not None else self._now()
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise ValueError("'amount' (a number) is required for the 'add' action")
        if float(amount) != int(amount):
            raise ValueError("'amount' must be a whole number")
        if unit is None:
            raise ValueError("'unit' is required for the 'add' action")
        result = add_time(start, int(amount), unit)
        return "\n".join(
            [
                f"Original date: {start.isoformat()}",
                f"New date: {result.isoformat()}",
                f"Change: {int(amount):+d} {unit}",
            ]
        )

    def _diff(self, date: str | None, to_date: str | None) -> str:
        if date is None or to_date is None:
            raise ValueError("Both 'date' and 'to_date' are required for 'diff'")
        d = difference(parse_iso(date), parse_iso(to_date))
        return "\n".join(
            [
                f"From {date} to {to_date}:",
                f"- Years: {d['years']}",
                f"- Months: {d['months']}",
                f"- Days: {d['days']}",
                f"- Hours: {d['hours']}",
                f"- Minutes: {d['minutes']}",
                f"- Seconds: {d['seconds']}",
                f"- Total seconds: {d['total_seconds']}",
            ]
        )


def _opt_str(arguments: Arguments, key: str) -> str | None:
    value = arguments.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string")
    return value
