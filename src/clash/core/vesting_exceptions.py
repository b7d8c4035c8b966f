"""
Vesting-specific exception hierarchy for Clash.

Provides typed exceptions for token and vesting operations so callers can
tell precondition failures apart and react precisely. Every contract-level
error leaves contract state unchanged.
"""

from __future__ import annotations

from typing import Any


class ClashError(Exception):
    """Base exception for all Clash errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried unchanged
    """

    kind: str = "ClashError"

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for API/CLI output."""
        return {
            "error": self.kind,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# ==================== Contract Errors ====================


class ContractExecutionError(ClashError):
    """Raised when a contract call is rejected.

    The call has no side effects; it must be corrected and resubmitted.
    """

    kind = "ContractExecutionError"


class TokenTransferError(ContractExecutionError):
    """Raised when the token ledger rejects a transfer or approval.

    Examples: amount exceeds balance, zero-address recipient, insufficient allowance.
    """

    kind = "TokenTransferError"


class VestingError(ContractExecutionError):
    """Base class for vesting schedule rejections."""

    kind = "VestingError"


class InvalidParamsError(VestingError):
    """Raised when batch argument sequences differ in length or hold non-integers."""

    kind = "InvalidParams"


class UnlockBeforeStartError(VestingError):
    """Raised when the first unlock event predates the schedule start."""

    kind = "UnlockBeforeStart"


class UnlockOutOfOrderError(VestingError):
    """Raised when an unlock event precedes the latest stored unlock time."""

    kind = "UnlockOutOfOrder"


class InvalidPercentError(VestingError):
    """Raised when the cumulative unlock percentage would exceed 10000 (100%)."""

    kind = "InvalidPercent"


class ZeroAddressError(VestingError):
    """Raised when a beneficiary address is empty or the zero address."""

    kind = "ZeroAddress"


class ZeroAmountError(VestingError):
    """Raised when a beneficiary allocation is not strictly positive."""

    kind = "ZeroAmount"


class InsufficientFundsError(VestingError):
    """Raised when the schedule balance cannot cover new allocations net of releases."""

    kind = "InsufficientFunds"


class UnauthorizedError(VestingError):
    """Raised when the caller is not the required principal."""

    kind = "Unauthorized"

    def __init__(self, message: str, account: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.account = account
        if account is not None:
            self.details.setdefault("account", account)


class NothingAllocatedError(VestingError):
    """Raised when a claim finds no allocation or nothing newly unlocked."""

    kind = "NothingAllocated"


class AlreadyFullyReleasedError(VestingError):
    """Raised when a beneficiary claims after receiving the full allocation."""

    kind = "AlreadyFullyReleased"


class VestingNotEndedError(VestingError):
    """Raised when a sweep is attempted before the last unlock time."""

    kind = "VestingNotEnded"


class NothingToWithdrawError(VestingError):
    """Raised when a sweep finds no balance of the named token."""

    kind = "NothingToWithdraw"


# ==================== Tooling Errors ====================


class ConfigurationError(ClashError):
    """Raised when required configuration is missing or invalid."""

    kind = "ConfigurationError"


class DeploymentError(ClashError):
    """Raised when schedule deployment or member assignment cannot proceed."""

    kind = "DeploymentError"


__all__ = [
    "ClashError",
    "ContractExecutionError",
    "TokenTransferError",
    "VestingError",
    "InvalidParamsError",
    "UnlockBeforeStartError",
    "UnlockOutOfOrderError",
    "InvalidPercentError",
    "ZeroAddressError",
    "ZeroAmountError",
    "InsufficientFundsError",
    "UnauthorizedError",
    "NothingAllocatedError",
    "AlreadyFullyReleasedError",
    "VestingNotEndedError",
    "NothingToWithdrawError",
    "ConfigurationError",
    "DeploymentError",
]
