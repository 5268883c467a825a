from __future__ import annotations

import secrets

ALPHABET = "abcdefghijkmnpqrstuvwxyz23456789"


def generate_record_id(prefix: str, length: int = 20) -> str:
    """Generates a prefixed opaque identifier, e.g. ``uch_k3v9...``."""
    if length <= 0:
        raise ValueError("length must be positive")
    if not prefix:
        raise ValueError("prefix must not be empty")
    return f"{prefix}_" + "".join(secrets.choice(ALPHABET) for _ in range(length))
