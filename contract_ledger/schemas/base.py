"""Base schemas and common types for ledger state and results."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


# =============================================================================
# ENUMS
# =============================================================================


class JobStatus(str, Enum):
    """Lifecycle of a job. Only moves forward."""

    OPEN = "Open"
    TAKEN = "Taken"
    DONE = "Done"


class ServiceLevel(str, Enum):
    """Service level label of a mower SLA."""

    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"


# =============================================================================
# BASE SCHEMAS
# =============================================================================


class LedgerBaseModel(BaseModel):
    """Base model for values stored on the ledger.

    Fields use their wire names as aliases; the JSON written to the ledger
    always uses the aliases, so it round-trips with other clients.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True, exclude_none=True).encode()

    @classmethod
    def from_bytes(cls, data: bytes):
        return cls.model_validate_json(data)


# =============================================================================
# ERROR RESPONSES
# =============================================================================


class ErrorDetailResponse(LedgerBaseModel):
    """Error reported by one network node."""

    address: str
    msp_id: str
    message: str
    reason: str | None = None


class ErrorResponse(LedgerBaseModel):
    """Standard error response format for a failed transaction."""

    error: str
    message: str
    transaction_id: str | None = None
    details: list[ErrorDetailResponse] = []
