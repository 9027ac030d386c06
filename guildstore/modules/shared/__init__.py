"""
Guildstore Shared Module

Domain-level foundations shared by the guild module: the domain exception
hierarchy and its classification helpers. No storage or logging imports
live here.
"""

from .exceptions import (
    GuildDomainException,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
    get_error_severity,
    is_transient_error,
    should_alert,
)

__all__ = [
    "GuildDomainException",
    "NotFoundError",
    "InvalidOperationError",
    "ValidationError",
    "get_error_severity",
    "is_transient_error",
    "should_alert",
]
