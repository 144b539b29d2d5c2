"""Client-side services for Contract Ledger."""

from .classifier import (
    FailureKind,
    ResultError,
    TransactionFailure,
    TransactionResult,
    classify,
    log_failure,
)
from .contract_client import (
    ContractClient,
    CustomerContractClient,
    GeneralContractClient,
)

__all__ = [
    # Contract clients
    "ContractClient",
    "GeneralContractClient",
    "CustomerContractClient",
    # Result classification
    "FailureKind",
    "TransactionFailure",
    "TransactionResult",
    "ResultError",
    "classify",
    "log_failure",
]
