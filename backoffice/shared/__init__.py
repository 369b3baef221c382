"""Shared utilities: audit enums, request helpers, telemetry.

Used by domain, application, and infrastructure. No business logic.
"""

from backoffice.shared.enums import (
    ExportFormat,
    LogAction,
    LogCategory,
    LogSeverity,
    LogStatus,
    StatisticsPeriod,
)
from backoffice.shared.utils import ensure_utc, epoch_ms, generate_uuid, utc_now

__all__ = [
    "LogAction",
    "LogStatus",
    "LogSeverity",
    "LogCategory",
    "StatisticsPeriod",
    "ExportFormat",
    "utc_now",
    "epoch_ms",
    "ensure_utc",
    "generate_uuid",
]
