"""Contract Ledger chaincode.

Chaincode is organized by concern:
- router/codec: transaction names and wire arguments
- general_contract, jobs, customers: the state machines
- evaluation: SLA scoring
- deploy: the default chaincode deployments
"""

from .codec import format_decimal, parse_decimal, quantize
from .customers import CustomerSLAManager
from .deploy import build_customer_chaincode, build_general_chaincode
from .errors import (
    AlreadyExistsError,
    ContractError,
    InvalidSLAError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from .evaluation import BandScoringPolicy, ScoringPolicy, SLAEvaluator
from .general_contract import GeneralContractService
from .jobs import JobLifecycleManager
from .router import Chaincode, TransactionRoute

__all__ = [
    # Routing
    "Chaincode",
    "TransactionRoute",
    "build_general_chaincode",
    "build_customer_chaincode",
    # Codec
    "quantize",
    "parse_decimal",
    "format_decimal",
    # Managers
    "GeneralContractService",
    "JobLifecycleManager",
    "CustomerSLAManager",
    # Evaluation
    "SLAEvaluator",
    "ScoringPolicy",
    "BandScoringPolicy",
    # Errors
    "ContractError",
    "NotFoundError",
    "AlreadyExistsError",
    "InvalidStateError",
    "InvalidSLAError",
    "ValidationError",
]
