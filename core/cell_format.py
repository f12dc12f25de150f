# ============================================================
# MyBrowse - Terminal MySQL Browser
# core/cell_format.py — MySQL value → display string
# ============================================================

import datetime
import json
from decimal import Decimal
from typing import Any, List, Sequence

NULL_TEXT = "NULL"


def format_timedelta(value: datetime.timedelta) -> str:
    """MySQL TIME columns arrive as timedelta; render them as [-]H:MM:SS."""
    total_us = (value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds
    sign = "-" if total_us < 0 else ""
    total_us = abs(total_us)
    seconds, micros = divmod(total_us, 1_000_000)
    hours, rest = divmod(seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    text = f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"
    if micros:
        text += f".{micros:06d}"
    return text


def format_bytes_value(value: bytes) -> str:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return "0x" + value.hex()


def format_cell(value: Any) -> str:
    """Convert one value returned by mysql-connector into display text."""
    if value is None:
        return NULL_TEXT
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return format_bytes_value(bytes(value))
    if isinstance(value, datetime.datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, datetime.timedelta):
        return format_timedelta(value)
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return ",".join(sorted(str(v) for v in value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def format_row(row: Sequence[Any]) -> List[str]:
    return [format_cell(cell) for cell in row]
