from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation

SECONDS_PER_HOUR = 3600

_HMS_RE = re.compile(r"^(?:(\d+)h)?(?:(\d+)m)?(?:(\d+(?:\.\d+)?)s)?$")
_SECONDS_RE = re.compile(r"^\d+(?:\.\d+)?s?$")


def convert_time_token_to_seconds(token: str) -> float:
    """Parse ``hh:mm:ss``, ``mm:ss``, ``1h2m3s`` or plain seconds."""
    token = token.strip().lower()
    if not token:
        raise ValueError("Empty time token")

    if ":" in token:
        parts = token.split(":")
        if len(parts) == 2:
            minutes_text, seconds_text = parts
            hours_text = "0"
        elif len(parts) == 3:
            hours_text, minutes_text, seconds_text = parts
        else:
            raise ValueError(f"Invalid time token: {token}")

        if not (hours_text.isdigit() and minutes_text.isdigit()):
            raise ValueError(f"Invalid time token: {token}")
        return hms_to_seconds(int(hours_text), int(minutes_text), _parse_decimal_seconds(seconds_text))

    if _SECONDS_RE.match(token):
        return _round_seconds(_parse_decimal_seconds(token[:-1] if token.endswith("s") else token))

    match = _HMS_RE.match(token)
    if match and any(match.groups()):
        return hms_to_seconds(
            int(match.group(1) or 0),
            int(match.group(2) or 0),
            float(match.group(3) or 0),
        )

    raise ValueError(f"Invalid time token: {token}")


def parse_time_delta(token: str) -> float:
    token = token.strip()
    if not token:
        raise ValueError("Empty time token")
    if token[0] not in {"+", "-"}:
        raise ValueError("Time delta must start with + or -")
    sign = -1.0 if token[0] == "-" else 1.0
    seconds = convert_time_token_to_seconds(token[1:])
    return _round_seconds(sign * seconds)


def hms_to_seconds(hours: int, minutes: int, seconds: float) -> float:
    if hours < 0 or minutes < 0 or seconds < 0:
        raise ValueError("Time components must be non-negative")
    return _round_seconds(hours * SECONDS_PER_HOUR + minutes * 60 + seconds)


def format_clock(value: float) -> str:
    """Render seconds as ``HH:MM:SS``; non-finite or negative input shows zero."""
    if not math.isfinite(value) or value < 0:
        return "00:00:00"
    total = int(value)
    hours, remainder = divmod(total, SECONDS_PER_HOUR)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_trim_token(value: float) -> str:
    if not math.isfinite(value) or value < 0:
        value = 0.0
    minutes = math.floor(value / 60)
    seconds = math.floor(value % 60)
    return f"{minutes}m{seconds}s"


def _parse_decimal_seconds(value: str) -> float:
    try:
        return float(Decimal(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid time token: {value}") from exc


def _round_seconds(value: float) -> float:
    return round(value, 3)
