import math
import re

# "3 PM", "3:00 pm", "12:30AM", or a bare 24h hour like "15"
_TIME_LABEL = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?\s*([AaPp][Mm])?\s*$")

def to24h(label: str | None) -> int | None:
    """
    Parse a 12-hour time label ("H[:MM] AM|PM") into an hour in 0..23.

    Minutes are accepted but ignored. A label without a meridiem is taken
    as a 24h hour. Anything else (including out-of-range hours) gives None.
    """
    if not label:
        return None
    m = _TIME_LABEL.match(label)
    if not m:
        return None
    hour = int(m.group(1))
    minutes = m.group(2)
    if minutes is not None and int(minutes) > 59:
        return None
    meridiem = (m.group(3) or "").upper()
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        if meridiem == "AM":
            return 0 if hour == 12 else hour
        return hour if hour == 12 else hour + 12
    return hour if 0 <= hour <= 23 else None

def hour_window(hour: int) -> tuple[int, int]:
    """Inclusive [hour-1, hour+1], clamped to the day (no wrap past midnight)."""
    return max(0, hour - 1), min(23, hour + 1)

def clean_postcode(postcode: str | int | None) -> str | None:
    """Comma-stripped postcode ("3,000" -> "3000"); empty means absent."""
    if postcode is None:
        return None
    cleaned = str(postcode).replace(",", "").strip()
    return cleaned or None

def is_finite_number(v: object) -> bool:
    # bool is an int subclass but never a coordinate
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)
