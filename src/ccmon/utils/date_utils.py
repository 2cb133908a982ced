import re
from datetime import timedelta
from typing import Union

# Go-style duration components, e.g. "1h30m", "250ms", "1.5s"
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_PLAIN_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: Union[str, int, float, timedelta]) -> timedelta:
    """
    Parses a duration such as '250ms', '1s', '1m30s' or '2h' into a timedelta.

    Bare numbers (int/float or numeric strings) are interpreted as seconds so
    that YAML documents may also use plain numbers.

    Raises:
        ValueError: If the string is not a valid duration.
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)

    text = str(value).strip()
    if not text:
        raise ValueError("Invalid duration: empty string")

    if _PLAIN_NUMBER.match(text):
        return timedelta(seconds=float(text))

    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()

    if pos == 0 or pos != len(text):
        raise ValueError(f"Invalid duration: {value!r}. Use a format like '250ms', '10s', '1m30s' or '2h'.")

    return timedelta(seconds=sign * total)


def format_duration(delta: timedelta) -> str:
    """Formats a timedelta the way Go prints durations ('1m30s', '250ms', '0s')."""
    seconds = delta.total_seconds()
    if seconds == 0:
        return "0s"

    sign = "-" if seconds < 0 else ""
    seconds = abs(seconds)
    if seconds < 1:
        return f"{sign}{seconds * 1000:g}ms"

    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    parts = []
    if hours:
        parts.append(f"{int(hours)}h")
    if hours or minutes:
        parts.append(f"{int(minutes)}m")
    parts.append(f"{round(secs, 6):g}s")
    return sign + "".join(parts)
