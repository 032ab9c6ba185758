"""
Platform roles.

This defines WHO a principal is allowed to act as, not HOW we check it.
The actual checking happens in policies.py.
"""

from enum import Enum


class UserRole(str, Enum):
    """Platform-wide role stored on the user record."""

    USER = "user"                # Regular end user
    AGENT = "agent"              # Sales/referral agent
    ADMIN = "admin"              # Operations staff
    SUPERADMIN = "superadmin"    # Full platform control


# Roles allowed through require_admin
ADMIN_ROLES: frozenset[UserRole] = frozenset({UserRole.ADMIN, UserRole.SUPERADMIN})


def parse_role(value: str | None) -> UserRole:
    """Map a stored role string to a UserRole, defaulting to USER."""
    try:
        return UserRole(value) if value else UserRole.USER
    except ValueError:
        return UserRole.USER
