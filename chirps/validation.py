"""
chirps/validation.py -- Chirp body rules: length limit and profanity filter.

Pure functions, no I/O. Shared by POST /api/chirps and the standalone
POST /api/validate_chirp endpoint so both apply exactly the same rules.
"""

import re

MAX_CHIRP_LENGTH = 140

PROFANE_WORDS = ("kerfuffle", "sharbert", "fornax")

CENSOR = "****"

# Whole words only, any case. "Kerfuffle!" is censored, "kerfuffles" is not.
# Word boundaries are ASCII-only, so "éfornax" is censored to "é****".
_PROFANITY_RE = re.compile(r"\b(" + "|".join(PROFANE_WORDS) + r")\b", re.IGNORECASE | re.ASCII)


class ChirpTooLongError(ValueError):
    """Raised when a chirp body exceeds MAX_CHIRP_LENGTH characters."""

    def __init__(self, length: int) -> None:
        super().__init__(f"Chirp is too long ({length} > {MAX_CHIRP_LENGTH} characters)")
        self.length = length


def clean_body(body: str) -> str:
    """Replace every profane word in body with ****."""
    return _PROFANITY_RE.sub(CENSOR, body)


def validate_chirp(body: str) -> str:
    """Check the length limit and return the cleaned body.

    Length is measured in characters (not bytes) on the raw body, before
    censoring.
    """
    if len(body) > MAX_CHIRP_LENGTH:
        raise ChirpTooLongError(len(body))
    return clean_body(body)
