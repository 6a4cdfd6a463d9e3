"""Exception types for the pool pricing core.

Every error carries a stable ``code`` matching its class name. Errors
are terminal for the operation: nothing raises after state has been mutated.
"""

from __future__ import annotations


class AmmError(Exception):
    """Base class for all pool errors."""

    code = "AmmError"
    default_message = "pool operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(f"{self.code}: {self.message}")


class PreconditionError(AmmError, ValueError):
    """The caller supplied invalid or inconsistent input."""


class ArithmeticFailure(AmmError, ArithmeticError):
    """An intermediate value could not be represented, or a divisor was zero."""


class PolicyRejection(AmmError):
    """The computed result violates a caller- or protocol-level bound."""


class StateError(AmmError):
    """Pool record, registry or custody is not in the state the operation needs."""


class AlreadyInitialized(PreconditionError):
    code = "AlreadyInitialized"
    default_message = "The pool has already been initialized."


class ZeroAmount(PreconditionError):
    code = "ZeroAmount"
    default_message = "Amounts provided for liquidity are zero."


class SameTokenSwap(PreconditionError):
    code = "SameTokenSwap"
    default_message = "Same token swap."


class InvalidMint(PreconditionError):
    code = "InvalidMint"
    default_message = "Invalid token mint account."


class InvalidVault(PreconditionError):
    code = "InvalidVault"
    default_message = "Invalid token vault account."


class FeeOutOfRange(PreconditionError):
    code = "FeeOutOfRange"
    default_message = "Trading fee must be within [0, 10000] basis points."


class MathOverflow(ArithmeticFailure):
    code = "MathOverflow"
    default_message = "Integer overflow or underflow."


class ZeroDivision(ArithmeticFailure):
    code = "ZeroDivision"
    default_message = "Division by zero."


class InsufficientInitialLiquidity(PolicyRejection):
    code = "InsufficientInitialLiquidity"
    default_message = "Initial liquidity must be sufficient to cover MINIMUM_LIQUIDITY."


class InsufficientLiquidity(PolicyRejection):
    code = "InsufficientLiquidity"
    default_message = "Insufficient liquidity provided for existing pool ratio."


class LiquidityRatioMismatch(PolicyRejection):
    code = "LiquidityRatioMismatch"
    default_message = "Liquidity amounts do not match current pool ratio."


class MinimumOutputBalanceExceed(PolicyRejection):
    code = "MinimumOutputBalanceExceed"
    default_message = "Minimum output balance exceed."


class InvariantViolation(StateError):
    """Raised when a pool record fails one or more invariants."""

    code = "InvariantViolation"
    default_message = "pool invariant violated"

    def __init__(self, violations: list[str]) -> None:
        self.violations = list(violations)
        super().__init__(f"invariant violations: {', '.join(self.violations)}")


class PoolExists(StateError):
    code = "PoolExists"
    default_message = "A pool for this asset pair already exists."


class PoolNotFound(StateError):
    code = "PoolNotFound"
    default_message = "No pool is registered under this key."


class PoolBusy(StateError):
    code = "PoolBusy"
    default_message = "Timed out waiting for the pool lock."


class CustodyError(StateError):
    code = "CustodyError"
    default_message = "Custody transfer failed."
