"""ID and value generators."""

import secrets
import uuid

from backoffice.shared.utils.datetime import epoch_ms


def generate_uuid() -> str:
    """Generate a random UUID4 string for primary keys.

    Returns:
        A new UUID string (36 chars, hyphenated).
    """
    return str(uuid.uuid4())


def generate_request_id() -> str:
    """Fallback request id when the client sent none: ``req_<epoch_ms>_<random>``."""
    return f"req_{epoch_ms()}_{secrets.token_hex(5)}"
