# tests/test_strength.py

import pytest

from passwpass.strength import StrengthTier, classify, score_password


@pytest.mark.parametrize("password, expected", [
    ("", StrengthTier.WEAK),
    ("abc", StrengthTier.WEAK),          # lowercase only: 1
    ("abc1", StrengthTier.MEDIUM),       # 2
    ("abcdefgh", StrengthTier.MEDIUM),   # length 8 + lowercase: 2
    ("abcdefghijkl", StrengthTier.MEDIUM),  # length 12 + lowercase: 3
    ("aB1!", StrengthTier.STRONG),       # four classes, short: 4
    ("Ab1!Ab1!Ab1!", StrengthTier.STRONG),
])
def test_classify(password, expected):
    assert classify(password) == expected


def test_tier_string_values():
    assert str(classify("")) == "Weak"
    assert classify("Ab1!Ab1!Ab1!").value == "Strong"
    assert StrengthTier.MEDIUM == "Medium"


def test_score_bounds():
    assert score_password("") == 0
    assert score_password("Ab1!" * 3) == 6


@pytest.mark.parametrize("unit", ["a", "A", "1", "!", "aA", "a1!", "Ab1!"])
def test_appending_never_lowers_tier(unit):
    """
    Growing a password without changing its character classes never
    lowers its tier.
    """
    order = [StrengthTier.WEAK, StrengthTier.MEDIUM, StrengthTier.STRONG]
    previous = 0
    for repeat in range(1, 16):
        tier = order.index(classify(unit * repeat))
        assert tier >= previous
        previous = tier


def test_non_ascii_counts_as_special():
    assert score_password("é") == 1
