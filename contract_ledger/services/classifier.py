"""
Transaction Result Classifier: one place that turns gateway failures into a
closed set of outcomes.

Callers switch on FailureKind once instead of inspecting gateway errors at
every call site. Only COMMIT_STATUS_TIMEOUT is retryable, and only by asking
for the commit status again: the transaction may already be in a block, so
resubmitting it could apply it twice.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar
import logging

from ..ledger.errors import (
    CommitError,
    CommitStatusError,
    EndorseError,
    ErrorDetail,
    GatewayError,
    StatusCode,
    SubmitError,
)
from ..models import ValidationCode
from ..schemas import ErrorDetailResponse, ErrorResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FailureKind(str, Enum):
    ENDORSEMENT_FAILURE = "ENDORSEMENT_FAILURE"
    SUBMISSION_FAILURE = "SUBMISSION_FAILURE"
    COMMIT_STATUS_TIMEOUT = "COMMIT_STATUS_TIMEOUT"
    COMMIT_STATUS_FAILURE = "COMMIT_STATUS_FAILURE"
    COMMIT_REJECTED = "COMMIT_REJECTED"
    UNCLASSIFIED = "UNCLASSIFIED"


@dataclass(frozen=True)
class TransactionFailure:
    """A classified transaction failure."""

    kind: FailureKind
    message: str
    transaction_id: str | None = None
    status: StatusCode | None = None
    validation_code: ValidationCode | None = None  # Set for COMMIT_REJECTED
    details: tuple[ErrorDetail, ...] = ()

    @property
    def retryable(self) -> bool:
        """True only when re-querying the commit status may succeed."""
        return self.kind == FailureKind.COMMIT_STATUS_TIMEOUT

    @property
    def domain_reason(self) -> str | None:
        """Chaincode error reason reported by the peers, e.g. NOT_FOUND."""
        for detail in self.details:
            if detail.reason:
                return detail.reason
        return None

    def to_error_response(self) -> ErrorResponse:
        return ErrorResponse(
            error=self.kind.value,
            message=self.message,
            transaction_id=self.transaction_id,
            details=[
                ErrorDetailResponse(
                    address=d.address,
                    msp_id=d.msp_id,
                    message=d.message,
                    reason=d.reason,
                )
                for d in self.details
            ],
        )


@dataclass
class TransactionResult(Generic[T]):
    """Outcome of one ledger call: a value or a classified failure."""

    value: T | None = None
    failure: TransactionFailure | None = None
    transaction_id: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def unwrap(self) -> T:
        """Return the value, or raise the failure as a ResultError."""
        if self.failure is not None:
            raise ResultError(self.failure)
        return self.value


class ResultError(Exception):
    """Raised by TransactionResult.unwrap on a failed result."""

    def __init__(self, failure: TransactionFailure):
        super().__init__(f"{failure.kind.value}: {failure.message}")
        self.failure = failure


def classify(error: Exception) -> TransactionFailure:
    """Map any exception from a ledger call to a TransactionFailure."""
    transaction_id = getattr(error, "transaction_id", None)

    if isinstance(error, EndorseError):
        kind = FailureKind.ENDORSEMENT_FAILURE
    elif isinstance(error, SubmitError):
        kind = FailureKind.SUBMISSION_FAILURE
    elif isinstance(error, CommitStatusError):
        kind = (
            FailureKind.COMMIT_STATUS_TIMEOUT
            if error.is_timeout
            else FailureKind.COMMIT_STATUS_FAILURE
        )
    elif isinstance(error, CommitError):
        return TransactionFailure(
            kind=FailureKind.COMMIT_REJECTED,
            message=error.message,
            transaction_id=transaction_id,
            status=error.status,
            validation_code=error.code,
        )
    elif isinstance(error, GatewayError):
        kind = FailureKind.UNCLASSIFIED
    else:
        return TransactionFailure(
            kind=FailureKind.UNCLASSIFIED,
            message=f"unexpected error: {error}",
            transaction_id=transaction_id,
        )

    return TransactionFailure(
        kind=kind,
        message=error.message,
        transaction_id=transaction_id,
        status=error.status,
        details=error.details,
    )


def log_failure(function: str, failure: TransactionFailure) -> None:
    """Log a classified failure once, at the level its kind deserves."""
    prefix = f"{function} failed"
    if failure.transaction_id:
        prefix += f" (tx {failure.transaction_id})"

    if failure.kind == FailureKind.ENDORSEMENT_FAILURE:
        logger.warning(f"{prefix}: endorsement failure [{failure.status.value}]: {failure.message}")
        for detail in failure.details:
            logger.warning(
                f"  - address: {detail.address}; mspId: {detail.msp_id}; message: {detail.message}"
            )
    elif failure.kind == FailureKind.SUBMISSION_FAILURE:
        logger.error(f"{prefix}: submit failure [{failure.status.value}]: {failure.message}")
    elif failure.kind == FailureKind.COMMIT_STATUS_TIMEOUT:
        logger.warning(f"{prefix}: timeout waiting for commit status: {failure.message}")
    elif failure.kind == FailureKind.COMMIT_STATUS_FAILURE:
        logger.error(f"{prefix}: error obtaining commit status: {failure.message}")
    elif failure.kind == FailureKind.COMMIT_REJECTED:
        logger.warning(
            f"{prefix}: commit rejected with status code "
            f"{int(failure.validation_code)} ({failure.validation_code.name})"
        )
    else:
        logger.error(f"{prefix}: {failure.message}")
        for detail in failure.details:
            logger.error(
                f"  - address: {detail.address}; mspId: {detail.msp_id}; message: {detail.message}"
            )
