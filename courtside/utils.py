"""Utility functions for common operations across the application."""

import re

# Lower-case only: "A@B.COM" is rejected on purpose.
EMAIL_PATTERN = re.compile(r"^[a-z0-9._%+\-]+@[a-z0-9.\-]+\.[a-z]{2,}$")


def is_valid_email(email: str) -> bool:
    """Return True if the whole string is an accepted email address."""
    return EMAIL_PATTERN.fullmatch(email) is not None
