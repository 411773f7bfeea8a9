"""
Categories a backend failure is sorted into.

The category decides the recovery UI: a retry hint, a force-buy override or an
insufficient-funds message.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    SECURITY_REJECTION = "security_rejection"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    NETWORK_TIMEOUT = "network_timeout"
    UPSTREAM_USER_ERROR = "upstream_user_error"
    UPSTREAM_SYSTEM_ERROR = "upstream_system_error"
    UNKNOWN = "unknown"

    @property
    def transient(self) -> bool:
        """Worth re-invoking the same action later."""
        return self in (ErrorKind.NETWORK_TIMEOUT, ErrorKind.UPSTREAM_SYSTEM_ERROR)
