"""Document key generation."""

from ulid import ULID


def generate_document_id() -> str:
    """Generate a text document key (ULID, lexicographically time-ordered)."""
    return str(ULID())
