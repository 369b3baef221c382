"""Shared utilities: datetime and generators."""

from backoffice.shared.utils.datetime import (
    days_ago,
    ensure_utc,
    epoch_ms,
    minutes_ago,
    utc_now,
)
from backoffice.shared.utils.generators import generate_request_id, generate_uuid

__all__ = [
    "days_ago",
    "ensure_utc",
    "epoch_ms",
    "generate_request_id",
    "generate_uuid",
    "minutes_ago",
    "utc_now",
]
