import re

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def sanitize_input(value: str | None) -> str:
    """Trim free text and drop angle brackets so it can't carry markup."""
    v = (value or "").strip()
    return v.replace("<", "").replace(">", "")


def is_valid_email(value: str | None) -> bool:
    return bool(value) and _EMAIL_RE.match(value.strip()) is not None
