"""Shared validation utilities"""

import html
import re
from typing import Optional, Union

MAX_SKILLS = 20
SKILL_MIN_LENGTH = 2
SKILL_MAX_LENGTH = 50

PHONE_PATTERN = re.compile(r"^\+?[0-9][0-9\s\-()]{8,18}[0-9]$")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a phone number loosely: 10-20 characters, digits with the
    usual separators. Empty strings are treated as "not provided".

    Raises:
        ValueError: If phone number is invalid
    """
    if phone is None:
        return None

    phone = phone.strip()
    if not phone:
        return None

    if len(phone) < 10:
        raise ValueError("Phone must be at least 10 digits")
    if len(phone) > 20 or not PHONE_PATTERN.match(phone):
        raise ValueError("Invalid phone number")

    return phone


def validate_skills(value: Union[str, list, None]) -> list[str]:
    """
    Normalize a skill list. Accepts the comma separated string the
    application form sends, or a list.

    Returns:
        Ordered list of trimmed, non-empty skills

    Raises:
        ValueError: If the list is empty, too long, or a skill is out of bounds
    """
    if value is None:
        raise ValueError("Please enter at least one skill")

    raw = value.split(",") if isinstance(value, str) else value
    skills = [str(s).strip() for s in raw if str(s).strip()]

    if not skills:
        raise ValueError("Please enter at least one skill")
    if len(skills) > MAX_SKILLS:
        raise ValueError(f"Maximum {MAX_SKILLS} skills allowed")
    for skill in skills:
        if len(skill) < SKILL_MIN_LENGTH:
            raise ValueError(f"Each skill must be at least {SKILL_MIN_LENGTH} characters")
        if len(skill) > SKILL_MAX_LENGTH:
            raise ValueError(f"Each skill must be less than {SKILL_MAX_LENGTH} characters")

    return skills


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Escape HTML special characters to prevent XSS in free text shown to
    the other party. Returns None if input is None.
    """
    if value is None:
        return None
    return html.escape(value, quote=True)
