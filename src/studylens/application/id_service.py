"""Identifier generation for records and report items."""

from ulid import ULID


def generate_id(prefix: str) -> str:
    """
    Generate a unique, time-sortable identifier using ULID.

    ULIDs stay unique when many are generated in the same millisecond,
    so report items built in a tight loop never collide.
    """
    return f"{prefix}_{ULID()}"
