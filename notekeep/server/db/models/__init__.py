"""Module for database models."""

from . import kv, note, user  # noqa: F401

__all__ = [
    "kv",
    "note",
    "user",
]
