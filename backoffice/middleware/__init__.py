"""HTTP middleware: request ID, correlation ID, principal context, rate limit, audit log.

Applied in main app; order matters (last added = outermost).
"""

from backoffice.middleware.audit_log import AuditLogMiddleware
from backoffice.middleware.correlation_id import CorrelationIDMiddleware
from backoffice.middleware.principal_context import PrincipalContextMiddleware
from backoffice.middleware.rate_limit import RateLimitMiddleware
from backoffice.middleware.request_id import RequestIDMiddleware

__all__ = [
    "AuditLogMiddleware",
    "CorrelationIDMiddleware",
    "PrincipalContextMiddleware",
    "RateLimitMiddleware",
    "RequestIDMiddleware",
]
