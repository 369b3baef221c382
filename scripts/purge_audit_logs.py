"""Retention purge: hard-delete audit log entries older than the retention period.

Usage:
    python -m scripts.purge_audit_logs [retention_days]
Defaults to AUDIT_RETENTION_DAYS from config. Intended for a daily cron job.
"""

import asyncio
import sys

from backoffice.application.services.audit_log_service import AuditLogService
from backoffice.core.config import get_settings
from backoffice.domain.exceptions import ValidationException
from backoffice.infrastructure.persistence.database import (
    dispose_engine,
    get_session_factory,
)
from backoffice.infrastructure.persistence.repositories import AuditLogRepository
from backoffice.shared.telemetry import setup_logging


async def main() -> None:
    """Delete audit entries past retention and print the count."""
    settings = get_settings()
    setup_logging()
    try:
        retention_days = int(sys.argv[1]) if len(sys.argv) > 1 else settings.audit_retention_days
    except ValueError:
        print(f"retention_days must be an integer: {sys.argv[1]}", file=sys.stderr)
        sys.exit(1)

    try:
        async with get_session_factory()() as session:
            async with session.begin():
                svc = AuditLogService(AuditLogRepository(session))
                deleted = await svc.delete_old_logs(retention_days)
    except ValidationException as e:
        print(e.message, file=sys.stderr)
        sys.exit(1)
    finally:
        await dispose_engine()
    print(f"Done. Deleted {deleted} audit log(s) older than {retention_days} days")


if __name__ == "__main__":
    asyncio.run(main())
