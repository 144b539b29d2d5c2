"""
Gateway errors raised while a transaction moves through the network.

These errors are produced only by the gateway, the endorsing peers and the
ordering service. Chaincode never raises them: a chaincode failure reaches the
caller as an EndorseError carrying one ErrorDetail per peer.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from ..models import ValidationCode


class StatusCode(str, Enum):
    """Status codes attached to gateway errors (gRPC status names)."""

    UNKNOWN = "UNKNOWN"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    ABORTED = "ABORTED"
    UNAVAILABLE = "UNAVAILABLE"


@dataclass(frozen=True)
class ErrorDetail:
    """Error reported by a single peer or orderer node."""

    address: str
    msp_id: str
    message: str
    reason: str | None = None  # Chaincode error reason, e.g. "NOT_FOUND"


class GatewayError(Exception):
    """Base exception for gateway operations."""

    def __init__(
        self,
        message: str,
        status: StatusCode = StatusCode.UNKNOWN,
        details: Sequence[ErrorDetail] = (),
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = tuple(details)


class TransactionError(GatewayError):
    """A gateway error bound to a specific transaction."""

    def __init__(
        self,
        transaction_id: str,
        message: str,
        status: StatusCode = StatusCode.UNKNOWN,
        details: Sequence[ErrorDetail] = (),
    ):
        super().__init__(message, status, details)
        self.transaction_id = transaction_id


class EndorseError(TransactionError):
    """The proposal could not be endorsed."""
    pass


class SubmitError(TransactionError):
    """The endorsed transaction could not be handed to the orderer."""
    pass


class CommitStatusError(TransactionError):
    """The commit status of a submitted transaction could not be obtained."""

    @property
    def is_timeout(self) -> bool:
        return self.status == StatusCode.DEADLINE_EXCEEDED or isinstance(
            self.__cause__, TimeoutError
        )


class CommitError(TransactionError):
    """The transaction was ordered but failed validation at commit."""

    def __init__(self, transaction_id: str, code: ValidationCode):
        super().__init__(
            transaction_id,
            f"transaction {transaction_id} failed to commit with status code "
            f"{int(code)} ({code.name})",
            StatusCode.ABORTED,
        )
        self.code = code
