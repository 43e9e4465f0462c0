"""Unit tests for chirps/filters.py -- profanity masking and length limit."""

import pytest

from chirps.filters import MAX_CHIRP_LENGTH, clean_profanity, is_too_long


@pytest.mark.parametrize(
    "text, expected",
    [
        ("This is a normal message", "This is a normal message"),
        ("This contains kerfuffle word", "This contains **** word"),
        ("Multiple sharbert and fornax words", "Multiple **** and **** words"),
        ("KERFUFFLE in uppercase", "**** in uppercase"),
        ("Sharbert!", "Sharbert!"),
        ("", ""),
    ],
)
def test_clean_profanity(text, expected):
    assert clean_profanity(text) == expected


class TestLength:
    def test_exactly_at_limit(self):
        assert not is_too_long("a" * MAX_CHIRP_LENGTH)

    def test_one_over_limit(self):
        assert is_too_long("a" * (MAX_CHIRP_LENGTH + 1))

    def test_limit_counts_characters_not_bytes(self):
        assert not is_too_long("é" * MAX_CHIRP_LENGTH)
