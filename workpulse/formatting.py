from __future__ import annotations


def _whole_seconds(seconds: float | None) -> int:
    if seconds is None:
        return 0
    # Negative input is a caller error; render it as zero.
    return max(0, int(seconds))


def format_hms(seconds: float | None) -> str:
    total = _whole_seconds(seconds)
    minutes, sec = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours:02d}:{minutes:02d}:{sec:02d}"


def format_hm(seconds: float | None) -> str:
    total = _whole_seconds(seconds)
    hours, remainder = divmod(total, 3600)
    return f"{hours}:{remainder // 60:02d}"


def format_break(seconds: float | None) -> str:
    if seconds is None:
        return "--:--"
    total = _whole_seconds(seconds)
    if total < 3600:
        return f"{total // 60}m"
    return format_hm(total)


def format_hours_minutes(seconds: float | None) -> str:
    total = _whole_seconds(seconds)
    hours, remainder = divmod(total, 3600)
    return f"{hours}h {remainder // 60}m"


def parse_hms(text: str) -> int:
    pieces = text.strip().split(":")
    if len(pieces) != 3 or not all(p.isdigit() for p in pieces):
        raise ValueError(f"expected HH:MM:SS, got {text!r}")
    hours, minutes, sec = (int(p) for p in pieces)
    if minutes >= 60 or sec >= 60:
        raise ValueError(f"minutes and seconds must be below 60: {text!r}")
    return hours * 3600 + minutes * 60 + sec
