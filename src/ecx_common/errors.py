"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Validation (out-of-range amount/score/multiplier)
  2xxx: Authorization (missing role, blacklisted, paused)
  3xxx: State (double init, completed project)
  4xxx: Insufficient funds (collateral, payment, balances)
  5xxx: Reentrancy
  9xxx: System / arithmetic

Every error aborts the running transaction; no partial state survives.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class ValidationError(AppError):
    pass


class AuthorizationError(AppError):
    pass


class StateError(AppError):
    pass


class InsufficientFundsError(AppError):
    pass


class ReentrancyError(AppError):
    def __init__(self) -> None:
        super().__init__(5001, "Reentrant call rejected")


# --- 1xxx: Validation ---

class AmountOutOfRangeError(ValidationError):
    def __init__(self, amount: int, low: int, high: int) -> None:
        super().__init__(1001, f"Transaction amount out of bounds: {amount} not in [{low}, {high}]")


class QualityScoreOutOfRangeError(ValidationError):
    def __init__(self, score: int) -> None:
        super().__init__(1002, f"Quality score must be <= 1000, got {score}")


class MarketConditionOutOfRangeError(ValidationError):
    def __init__(self, name: str, value: int, low: int, high: int) -> None:
        super().__init__(1003, f"Invalid {name}: {value} not in [{low}, {high}]")


class InvalidPricingModelError(ValidationError):
    def __init__(self, model: object) -> None:
        super().__init__(1004, f"Unknown pricing model: {model}")


class ListingCapacityExceededError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(1005, f"Listing capacity exceeded: {detail}")


class InvalidAddressError(ValidationError):
    def __init__(self) -> None:
        super().__init__(1006, "Invalid address")


# --- 2xxx: Authorization ---

class MissingRoleError(AuthorizationError):
    def __init__(self, role: str, address: str) -> None:
        super().__init__(2001, f"Caller does not have required role {role}: {address}")


class BlacklistedError(AuthorizationError):
    def __init__(self, address: str) -> None:
        super().__init__(2002, f"Account is blacklisted: {address}")


class PausedError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(2003, "Market is paused")


class NotProjectOwnerError(AuthorizationError):
    def __init__(self, project_id: int, address: str) -> None:
        super().__init__(2004, f"Project {project_id} is not owned by {address}")


class RenounceForOtherError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(2005, "Can only renounce roles for self")


# --- 3xxx: State ---

class PricingAlreadyInitializedError(StateError):
    def __init__(self, project_id: int) -> None:
        super().__init__(3001, f"Project already initialized: {project_id}")


class PricingNotInitializedError(StateError):
    def __init__(self, project_id: int) -> None:
        super().__init__(3002, f"Pricing not initialized for project {project_id}")


class ProjectCompletedError(StateError):
    def __init__(self, project_id: int) -> None:
        super().__init__(3003, f"Project already completed: {project_id}")


class ProjectNotFoundError(StateError):
    def __init__(self, project_id: int) -> None:
        super().__init__(3004, f"Project not found: {project_id}")


# --- 4xxx: Insufficient funds ---

class InsufficientCollateralError(InsufficientFundsError):
    def __init__(self, required: int, supplied: int) -> None:
        super().__init__(
            4001, f"Insufficient collateral: required {required}, supplied {supplied}"
        )


class InsufficientPaymentError(InsufficientFundsError):
    def __init__(self, required: int, supplied: int) -> None:
        super().__init__(
            4002,
            f"Insufficient payment for current price: required {required}, supplied {supplied}",
        )


class InsufficientBalanceError(InsufficientFundsError):
    def __init__(self, address: str, required: int, available: int) -> None:
        super().__init__(
            4003,
            f"Insufficient balance for {address}: required {required}, available {available}",
        )


class InsufficientCreditsError(InsufficientFundsError):
    def __init__(self, address: str, required: int, available: int) -> None:
        super().__init__(
            4004,
            f"Insufficient credits for {address}: required {required}, available {available}",
        )


class ReplayPoolExhaustedError(InsufficientFundsError):
    def __init__(self, seller: str, project_id: int, required: int, available: int) -> None:
        super().__init__(
            4005,
            f"Replay pool of {seller} for project {project_id} holds {available}, need {required}",
        )


class TreasuryShortfallError(InsufficientFundsError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            4006, f"Treasury shortfall: payout {required} exceeds pooled balance {available}"
        )


# --- 9xxx: System ---

class ArithmeticOverflowError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9001, f"Arithmetic overflow: {detail}")


class DivisionByZeroError(AppError):
    def __init__(self) -> None:
        super().__init__(9002, "Division by zero")


class InternalError(AppError):
    def __init__(self, detail: str = "Internal error") -> None:
        super().__init__(9003, detail)
