"""
Graded password strength.

Score: +2 for length >= 12 (else +1 for length >= 8), then +1 each for a
digit, a lowercase letter, an uppercase letter and a non-alphanumeric
character. Below 2 is Weak, below 4 is Medium, anything else Strong.
"""

import re
from enum import Enum

from . import config

DIGIT = re.compile(r"[0-9]")
LOWERCASE = re.compile(r"[a-z]")
UPPERCASE = re.compile(r"[A-Z]")
SPECIAL = re.compile(r"[^A-Za-z0-9]")


class StrengthTier(str, Enum):
    WEAK = "Weak"
    MEDIUM = "Medium"
    STRONG = "Strong"

    def __str__(self) -> str:
        return self.value


def score_password(password: str) -> int:
    """Raw score behind classify(), from 0 to 6."""
    password = password or ""
    score = 0
    if len(password) >= config.STRENGTH_LONG_LENGTH:
        score += 2
    elif len(password) >= config.STRENGTH_MEDIUM_LENGTH:
        score += 1

    for pattern in (DIGIT, LOWERCASE, UPPERCASE, SPECIAL):
        if pattern.search(password):
            score += 1
    return score


def classify(password: str) -> StrengthTier:
    score = score_password(password)
    if score < 2:
        return StrengthTier.WEAK
    if score < 4:
        return StrengthTier.MEDIUM
    return StrengthTier.STRONG
