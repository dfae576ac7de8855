"""Small text utilities for pipeline scripts."""

from __future__ import annotations

import secrets
import string

from transliterate import translit

# Characters easily confused with each other when read off a console are excluded
AMBIGUOUS_CHARS = "0O1Il"
PASSWORD_ALPHABET = "".join(
    c
    for c in string.ascii_uppercase + string.ascii_lowercase + string.digits + "+-*#$@!=%"
    if c not in AMBIGUOUS_CHARS
)


def password_generator(length: int) -> str:
    """Generate a random password of the given length.

    Raises:
        ValueError: If length is negative.
    """
    if length < 0:
        raise ValueError(f"Password length must be >= 0, got {length}")
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def transliterate_string(text: str, language: str = "ru") -> str:
    """Transliterate Cyrillic text into Latin characters."""
    return translit(text, language, reversed=True).strip()
