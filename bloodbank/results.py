"""Structured outcomes returned by ledger and camp operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    OK = "ok"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not-found"
    INVALID_INPUT = "invalid-input"
    CONFLICT = "conflict"
    INTERNAL_ERROR = "internal-error"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorCategory.OK: 200,
    ErrorCategory.UNAUTHORIZED: 401,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.INVALID_INPUT: 400,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.INTERNAL_ERROR: 500,
}


@dataclass
class LedgerResult:
    success: bool
    message: str
    category: ErrorCategory = ErrorCategory.OK
    batch: Any = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str, *, batch=None, **data) -> "LedgerResult":
        return cls(True, message, ErrorCategory.OK, batch=batch, data=data)

    @classmethod
    def fail(cls, category: ErrorCategory, message: str, **data) -> "LedgerResult":
        return cls(False, message, category, data=data)

    @property
    def http_status(self) -> int:
        return self.category.http_status

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            'success': self.success,
            'message': self.message,
            'category': self.category.value,
        }
        if self.batch is not None:
            payload['batch'] = self.batch.as_dict()
        payload.update(self.data)
        return payload


def unauthorized(message: str = "Not logged in") -> LedgerResult:
    return LedgerResult.fail(ErrorCategory.UNAUTHORIZED, message)


def not_found(message: str) -> LedgerResult:
    return LedgerResult.fail(ErrorCategory.NOT_FOUND, message)


def invalid(message: str, errors: Optional[dict] = None) -> LedgerResult:
    if errors:
        return LedgerResult.fail(ErrorCategory.INVALID_INPUT, message, errors=errors)
    return LedgerResult.fail(ErrorCategory.INVALID_INPUT, message)
