"""
Utility functions for the Retro Board application.
"""

import secrets
import string
from typing import Optional

from flask import current_app

DEFAULT_INVITE_CODE_LENGTH = 6

INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits

NAME_ADJECTIVES = (
    "Creative", "Thoughtful", "Insightful", "Brilliant",
    "Clever", "Wise", "Bold", "Curious",
)
NAME_ANIMALS = (
    "Owl", "Fox", "Eagle", "Dolphin",
    "Lion", "Tiger", "Bear", "Wolf",
)


def _get_invite_code_length(default: int = DEFAULT_INVITE_CODE_LENGTH) -> int:
    """Read invite code length from app config when available."""
    try:
        return int(current_app.config.get("INVITE_CODE_LENGTH", default))
    except RuntimeError:
        # No app context active
        return default


def generate_invite_code(length: Optional[int] = None) -> str:
    """Generate a short uppercase alphanumeric invite code."""
    if length is None:
        length = _get_invite_code_length()
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))


def normalize_invite_code(code: Optional[str]) -> str:
    """Strip whitespace and uppercase a user-typed invite code."""
    return (code or "").strip().upper()


def generate_anonymous_name() -> str:
    """Pick an adjective + animal display name, e.g. 'Curious Owl'."""
    return f"{secrets.choice(NAME_ADJECTIVES)} {secrets.choice(NAME_ANIMALS)}"
