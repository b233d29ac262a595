"""
Password strength scoring shared by the reset client and the confirm endpoint.
"""

import re
from typing import NamedTuple, Optional

MIN_LENGTH = 8
STRONG_LENGTH = 12
MIN_SCORE = 3
MAX_SCORE = 6
SYMBOLS = "@$!%*?&"

_SYMBOL_RE = re.compile(f"[{re.escape(SYMBOLS)}]")

WEAK_PASSWORD_MESSAGE = (
    "Please choose a stronger password (min. 8 chars, mix of letters, numbers & a symbol)"
)
MISMATCH_MESSAGE = "Passwords do not match"


class Rating(NamedTuple):
    label: str
    color: str


def password_strength(password: str) -> int:
    """Score a password from 0 to 6, one point per satisfied check."""
    password = password or ""
    checks = (
        len(password) >= MIN_LENGTH,
        re.search(r"[A-Z]", password) is not None,
        re.search(r"[a-z]", password) is not None,
        re.search(r"\d", password) is not None,
        _SYMBOL_RE.search(password) is not None,
        len(password) >= STRONG_LENGTH,
    )
    return sum(checks)


def password_rating(score: int) -> Rating:
    if score <= 2:
        return Rating("Weak", "red")
    if score == 3:
        return Rating("Good", "yellow")
    if score <= 5:
        return Rating("Better", "blue")
    return Rating("Strong", "green")


def check_new_password(password: str, confirm_password: Optional[str] = None) -> Optional[str]:
    """
    Return the message explaining why a new password is rejected, or None.

    ``confirm_password`` is only compared when given; the server has no
    second field to check against.
    """
    if confirm_password is not None and password != confirm_password:
        return MISMATCH_MESSAGE
    if len(password or "") < MIN_LENGTH or password_strength(password) < MIN_SCORE:
        return WEAK_PASSWORD_MESSAGE
    return None
