"""Error kinds raised by the ledger.

Use cases translate these into ``{"success": False, ...}`` result
dictionaries; see :mod:`pocket_ledger.services`.
"""

from __future__ import annotations

from typing import List, Optional, Sequence


class LedgerError(Exception):
    """Base class for every error the ledger raises on purpose."""

    kind = "error"

    def __init__(self, message: str, errors: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors: List[str] = list(errors) if errors else [message]


class InvalidArgumentError(LedgerError, ValueError):
    kind = "invalid_argument"


class NotFoundError(LedgerError, LookupError):
    kind = "not_found"


class PermissionDeniedError(LedgerError):
    kind = "permission_denied"


class InvalidStateError(LedgerError):
    kind = "invalid_state"


class ConflictError(LedgerError):
    kind = "conflict"
