"""Ledger values: general contracts, jobs, customers and mower SLAs."""

from pydantic import Field

from .base import JobStatus, LedgerBaseModel, ServiceLevel


class GeneralContract(LedgerBaseModel):
    """Top-level agreement of one organization."""

    org_id: str = Field(alias="OrgID")


class Job(LedgerBaseModel):
    """A unit of work taken and completed by a technician."""

    id: str = Field(alias="ID")
    status: JobStatus = Field(default=JobStatus.OPEN, alias="Status")
    technician_org: str = Field(alias="TechnicianOrg")
    # Set once the job is taken
    technician_id: str | None = Field(default=None, alias="TechnicianID")
    quantity: int = Field(alias="Quantity")
    description: str = Field(default="", alias="Description")
    price: float = Field(alias="Price")


class SLA(LedgerBaseModel):
    """Service-level agreement of one mower."""

    appraised_value: int = Field(alias="AppraisedValue")
    service_level: ServiceLevel = Field(alias="ServiceLevel")
    target_grass_length: float = Field(alias="TargetGrassLength")
    max_grass_length: float = Field(alias="MaxGrassLength")
    min_grass_length: float = Field(alias="MinGrassLength")
    id: str = Field(alias="ID")  # mower id


class Customer(LedgerBaseModel):
    """A customer and its mower SLAs, in insertion order."""

    id: str = Field(alias="ID")
    slas: list[SLA] = Field(default_factory=list, alias="SLAs")

    def find_sla(self, mower_id: str) -> int | None:
        """Index of the SLA for a mower, if present."""
        for index, sla in enumerate(self.slas):
            if sla.id == mower_id:
                return index
        return None
