# utils.py - shared helpers: logging, rounding, labels and timestamps
import logging
import math
import os
from datetime import datetime, timezone
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_dir: Optional[str] = None, level: Optional[str] = None) -> str:
    """
    Configure root logging to ``<log_dir>/app.log``.

    Directory and level default to LOG_DIR / LOG_LEVEL from the environment.
    basicConfig is a no-op once handlers exist, so Streamlit reruns are safe.
    """
    log_dir = log_dir or os.getenv("LOG_DIR", os.path.join(os.getcwd(), "logs"))
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "app.log")
    logging.basicConfig(
        filename=log_file,
        level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
        format=LOG_FORMAT,
    )
    return log_file


def estimate_tokens(text: str) -> int:
    """
    Estimate token count (roughly 1 token per 4 characters for English text)
    This is a fast approximation - actual tokenization would be slower
    """
    words = len(text.split())
    chars = len(text)
    # Average: 1 token ≈ 0.75 words or 4 characters (whichever is higher)
    return max(int(words * 1.3), int(chars / 4))


def round_half_up(value: float) -> int:
    # round() would give banker's rounding: round(62.5) == 62
    return int(math.floor(value + 0.5))


def percentage_of(part: int, total: int) -> Optional[int]:
    """Whole-number percentage, or None when there is nothing to divide by."""
    if not total:
        return None
    return round_half_up(part / total * 100)


def format_percentage(value: Optional[int]) -> str:
    return "N/A" if value is None else f"{value}%"


def truncate_label(label: str, max_len: int = 20) -> str:
    """Shorten long chart labels: anything over max_len becomes max_len-3 chars + '...'."""
    if len(label) <= max_len:
        return label
    return label[: max_len - 3] + "..."


def parse_timestamp(value: str) -> datetime:
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def format_relative_time(value: str, now: Optional[datetime] = None) -> str:
    """Human friendly distance from now, e.g. 'about 3 hours ago' or '2 days ago'."""
    now = now or datetime.now(timezone.utc)
    seconds = (now - parse_timestamp(value)).total_seconds()
    suffix = "ago"
    if seconds < 0:
        seconds, suffix = -seconds, "from now"

    minutes = round_half_up(seconds / 60)
    if minutes < 1:
        return "less than a minute " + suffix
    if minutes < 45:
        return f"{minutes} minute{'s' if minutes != 1 else ''} {suffix}"
    hours = round_half_up(minutes / 60)
    if minutes < 60 * 24:
        return f"about {hours} hour{'s' if hours != 1 else ''} {suffix}"
    days = round_half_up(minutes / (60 * 24))
    if days < 30:
        return f"{days} day{'s' if days != 1 else ''} {suffix}"
    months = round_half_up(days / 30)
    if months < 12:
        return f"{months} month{'s' if months != 1 else ''} {suffix}"
    years = round_half_up(days / 365)
    return f"about {years} year{'s' if years != 1 else ''} {suffix}"
