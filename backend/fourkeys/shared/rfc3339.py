import re
from datetime import UTC, datetime, timedelta, timezone

_RFC3339_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d+))?"
    r"(?:([Zz])|([+-])(\d{2}):(\d{2}))",
    re.ASCII,
)


def parse(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware datetime.

    The offset is mandatory. Fractional seconds may have any number of
    digits; anything past microseconds is truncated. Raises ValueError.
    """
    match = _RFC3339_RE.fullmatch(value)
    if not match:
        raise ValueError(f"{value!r} is not an RFC 3339 timestamp")

    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    fraction = match.group(7) or ""
    microsecond = int(fraction[:6].ljust(6, "0"))

    if match.group(8):
        tz = UTC
    else:
        offset = timedelta(hours=int(match.group(10)), minutes=int(match.group(11)))
        tz = timezone(-offset if match.group(9) == "-" else offset)

    return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=tz)
