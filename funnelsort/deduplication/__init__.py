"""Deduplication module."""

from .hash_engine import FullHasher

__all__ = [
    "FullHasher",
]
