"""
Ledger Client Error Taxonomy

Every failure raised inside the ledger client derives from LedgerClientError.
Workflows classify these into outcome values at their boundary; nothing here
is retried.

Copyright (c) 2024 Momentum. All rights reserved.
"""

from __future__ import annotations

from typing import Optional


class LedgerClientError(Exception):
    """Base class for ledger client errors."""
    pass


class ConfigurationError(LedgerClientError):
    """client.properties is missing, unreadable or malformed."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class SessionError(LedgerClientError):
    """The remote client could not be constructed, used or closed."""
    pass


class BusinessExecutionError(LedgerClientError):
    """The ledger rejected or failed to execute a contract."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DigestError(LedgerClientError):
    """The hash algorithm required for a digest is unavailable."""
    pass
