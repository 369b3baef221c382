"""Core: config, constants, exception handlers, and application bootstrap.

Single place for settings and shared constants.
"""

from backoffice.core.config import get_settings

__all__ = ["get_settings"]
