"""
chirps/filters.py -- Body validation and profanity filtering for chirps.
"""

MAX_CHIRP_LENGTH = 140

PROFANE_WORDS: frozenset[str] = frozenset({"kerfuffle", "sharbert", "fornax"})

_MASK = "****"


def clean_profanity(text: str) -> str:
    """Replace every whitespace-separated profane word with ****.

    Matching is case-insensitive and whole-word only: "Kerfuffle!" is kept
    because the punctuation makes it a different word. Runs of whitespace are
    collapsed to single spaces in the output.
    """
    return " ".join(_MASK if word.lower() in PROFANE_WORDS else word for word in text.split())


def is_too_long(body: str) -> bool:
    return len(body) > MAX_CHIRP_LENGTH
