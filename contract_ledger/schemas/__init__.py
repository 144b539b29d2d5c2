"""Contract Ledger schemas.

Schemas are organized by domain:
- base: Common types, enums, error responses
- contracts: General contracts, jobs, customers, SLAs
"""

from .base import (
    # Enums
    JobStatus,
    ServiceLevel,
    # Base classes
    LedgerBaseModel,
    # Errors
    ErrorDetailResponse,
    ErrorResponse,
)
from .contracts import SLA, Customer, GeneralContract, Job

__all__ = [
    # Enums
    "JobStatus",
    "ServiceLevel",
    # Base
    "LedgerBaseModel",
    # Errors
    "ErrorDetailResponse",
    "ErrorResponse",
    # Ledger values
    "GeneralContract",
    "Job",
    "Customer",
    "SLA",
]
