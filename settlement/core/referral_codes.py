from __future__ import annotations

import re
import secrets

ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
PREFIX_LENGTH = 4
PREFIX_FILLER = "X"
_NON_LETTERS_RE = re.compile(r"[^A-Z]")


def normalize_referral_code(raw_code: str) -> str:
    return raw_code.strip().upper()


def generate_referral_code(display_name: str | None = None, *, length: int = 4) -> str:
    """Builds an affiliate code: a 4-letter name prefix plus a random suffix.

    Non-letters in the name are replaced with ``X`` so codes stay easy to dictate.
    """
    if length <= 0:
        raise ValueError("length must be positive")

    source = (display_name or "USER").upper()[:PREFIX_LENGTH]
    prefix = _NON_LETTERS_RE.sub(PREFIX_FILLER, source).ljust(PREFIX_LENGTH, PREFIX_FILLER)
    suffix = "".join(secrets.choice(ALPHABET) for _ in range(length))
    return f"{prefix}{suffix}"
