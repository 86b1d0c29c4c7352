"""ULID generation helper."""

import ulid


def generate_ulid() -> str:
    """Generate a new ULID string (26 chars, sortable by creation time)."""
    return str(ulid.ULID())
