import re
from collections.abc import Callable
from datetime import UTC, datetime

UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE)
UNSAFE_CHARS_RE = re.compile(r"[<>\"']")

Clock = Callable[[], datetime]


def now() -> datetime:
    return datetime.now(UTC)


def is_uuid(value: str) -> bool:
    return bool(UUID_RE.fullmatch(value))


def sanitize_input(value: str, max_length: int = 255) -> str:
    """Strip quote and angle-bracket characters, trim and cap length."""
    return UNSAFE_CHARS_RE.sub("", value).strip()[:max_length]
