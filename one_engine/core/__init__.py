"""Core building blocks shared by every layer."""

from one_engine.core.utils import generate_api_key, generate_id, slugify, utc_now

__all__ = [
    "generate_api_key",
    "generate_id",
    "slugify",
    "utc_now",
]
