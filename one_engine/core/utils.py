"""
Shared utility functions for ONE Engine.

This module contains common utilities used across the codebase.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timezone


def generate_id(prefix: str = "") -> str:
    """
    Generate a unique ID with optional prefix.

    Args:
        prefix: Optional prefix (e.g., "proj", "user", "ord")

    Returns:
        A unique ID like "proj_a1b2c3d4e5f6"
    """
    uid = str(uuid.uuid4())[:12]
    return f"{prefix}_{uid}" if prefix else uid


def generate_api_key(prefix: str = "one_") -> str:
    """Generate a project API key like "one_pk_3f9c..."."""
    return f"{prefix}pk_{secrets.token_hex(32)}"


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def slugify(value: str) -> str:
    """Lowercase, hyphen-separated slug made of [a-z0-9-]."""
    slug = "".join(c if c.isalnum() else "-" for c in value.lower().strip())
    slug = "-".join(part for part in slug.split("-") if part)
    return slug.encode("ascii", "ignore").decode("ascii") or "project"
