"""
Canonical Pair Ordering
=======================

Two-user aggregates (head-to-head records) are always stored and read with
the lower identifier first. Every reader and writer goes through
canonical_pair so that (A, B) and (B, A) resolve to the same record.
"""

from typing import Tuple


def canonical_pair(user_a: str, user_b: str) -> Tuple[str, str, bool]:
    """
    Order two user identifiers.

    Returns:
        (lo, hi, is_swapped) where is_swapped is True when user_a was not
        already the lower identifier.

    Raises:
        ValueError: if both identifiers are the same user
    """
    if user_a == user_b:
        raise ValueError(f"A pair needs two distinct users, got {user_a!r} twice")
    if user_a < user_b:
        return user_a, user_b, False
    return user_b, user_a, True
