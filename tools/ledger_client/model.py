"""
Ledger Request and Outcome Types

Requests flow into a LedgerSession; outcomes flow back out to the workflows.

    OperationRequest = ContractInvocation | ValidationRequest
    OperationOutcome = ContractResult | ValidationResult | Failure

Copyright (c) 2024 Momentum. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, Optional, Union


class StatusCode(IntEnum):
    """Status codes reported by the ledger service."""
    OK = 200
    INVALID_HASH = 300
    INVALID_PREV_HASH = 301
    INVALID_CONTRACT = 302
    INVALID_OUTPUT = 303
    INVALID_NONCE = 304
    INCONSISTENT_STATES = 305
    INVALID_SIGNATURE = 400
    UNLOADABLE_KEY = 401
    UNLOADABLE_CONTRACT = 402
    CERTIFICATE_NOT_FOUND = 403
    CONTRACT_NOT_FOUND = 404
    CERTIFICATE_ALREADY_REGISTERED = 405
    INVALID_REQUEST = 410
    CONTRACT_CONTEXTUAL_ERROR = 411
    ASSET_NOT_FOUND = 412
    DATABASE_ERROR = 500
    UNKNOWN_TRANSACTION_STATUS = 501
    RUNTIME_ERROR = 502

    @classmethod
    def describe(cls, code: int) -> str:
        """Name for a raw code, or the code itself if unknown."""
        try:
            return cls(code).name
        except ValueError:
            return str(code)


class ErrorKind(Enum):
    """Classification of a failed operation."""
    CONFIGURATION = "configuration"
    SESSION = "session"
    BUSINESS_EXECUTION = "business_execution"
    VALIDATION_FAILED = "validation_failed"
    DIGEST = "digest"


# Requests

@dataclass(frozen=True)
class ContractInvocation:
    """Execute a registered contract."""
    contract_id: str
    parameters: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ValidationRequest:
    """Ask the ledger to prove an asset's history is untampered."""
    asset_id: str


OperationRequest = Union[ContractInvocation, ValidationRequest]


# Outcomes

@dataclass(frozen=True)
class ContractResult:
    """
    Result of a successful contract execution.

    payload is None when the contract returned nothing.
    """
    payload: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class ValidationResult:
    """Status of a validation request. status_code is kept raw."""
    status_code: int
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status_code == StatusCode.OK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status_code": self.status_code,
            "status": StatusCode.describe(self.status_code),
            "detail": self.detail,
        }


@dataclass(frozen=True)
class Failure:
    """A classified failure, reported once at the workflow boundary."""
    kind: ErrorKind
    message: str
    cause: Optional[BaseException] = field(default=None, compare=False)
    status_code: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        if self.status_code is not None:
            d["status_code"] = self.status_code
        return d


OperationOutcome = Union[ContractResult, ValidationResult, Failure]
