"""
Domain errors raised by chaincode.

Each error carries a stable reason code. The code travels with the
endorsement failure back to the client, so callers can tell a missing key
from an illegal transition without parsing messages. None of these are
retryable: re-running the same invocation gives the same answer.
"""


class ContractError(Exception):
    """Base exception for chaincode operations."""

    reason = "CONTRACT_ERROR"


class NotFoundError(ContractError):
    """The ledger key does not exist."""

    reason = "NOT_FOUND"


class AlreadyExistsError(ContractError):
    """The ledger key is already populated."""

    reason = "ALREADY_EXISTS"


class InvalidStateError(ContractError):
    """Transition not allowed from the current job status."""

    reason = "INVALID_STATE"


class InvalidSLAError(ContractError):
    """Grass length interval invariant violated (min <= target <= max)."""

    reason = "INVALID_SLA"


class ValidationError(ContractError):
    """Malformed input."""

    reason = "VALIDATION_ERROR"
