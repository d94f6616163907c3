from __future__ import annotations

import secrets
import uuid


def new_idempotency_key() -> str:
    return str(uuid.uuid4())


def make_reference_id(prefix: str) -> str:
    """Human readable checkout reference: ``<prefix>-`` plus 6 random digits."""
    return f"{prefix}-{100000 + secrets.randbelow(900000)}"
