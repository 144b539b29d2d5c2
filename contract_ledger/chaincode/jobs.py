"""
Job Lifecycle Manager: jobs move Open -> Taken -> Done.

Transitions only go forward. Each transition names the single state it may
start from, so skipping a state or repeating a transition is rejected with
InvalidStateError and nothing is written.
"""

import logging
import math
from typing import TYPE_CHECKING, AsyncIterator

from ..schemas import Job, JobStatus
from .errors import AlreadyExistsError, InvalidStateError, NotFoundError, ValidationError
from .state import entity_key, read_model, require_id, write_model

if TYPE_CHECKING:
    from ..ledger.stub import ChaincodeStub

logger = logging.getLogger(__name__)

JOB_OBJECT_TYPE = "Job"

# transition -> (required current status, resulting status)
TRANSITIONS: dict[str, tuple[JobStatus, JobStatus]] = {
    "TakeJob": (JobStatus.OPEN, JobStatus.TAKEN),
    "JobDone": (JobStatus.TAKEN, JobStatus.DONE),
}


class JobLifecycleManager:
    """Creates jobs and advances them through their lifecycle."""

    def __init__(self, stub: "ChaincodeStub"):
        self._stub = stub

    def _key(self, job_id: str) -> str:
        return entity_key(self._stub, JOB_OBJECT_TYPE, require_id(job_id, "job id"))

    # =========================================================================
    # CREATE
    # =========================================================================

    async def create(
        self,
        job_id: str,
        technician_org: str,
        quantity: int,
        description: str,
        price: float,
    ) -> Job:
        """Create an Open job. Fails if the id is taken."""
        key = self._key(job_id)
        if quantity < 0:
            raise ValidationError(f"quantity must not be negative, got {quantity}")
        if not math.isfinite(price):
            raise ValidationError(f"price must be a finite number, got {price}")
        if price < 0:
            raise ValidationError(f"price must not be negative, got {price}")
        if await self._stub.get_state(key) is not None:
            logger.warning(f"Job {job_id} already exists")
            raise AlreadyExistsError(f"job {job_id} already exists")

        job = Job(
            id=job_id,
            status=JobStatus.OPEN,
            technician_org=technician_org,
            quantity=quantity,
            description=description,
            price=price,
        )
        await write_model(self._stub, key, job)
        logger.info(f"Created job {job_id} for {technician_org}")
        return job

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    async def take_job(self, job_id: str, technician_id: str) -> Job:
        require_id(technician_id, "technician id")
        job = await self._transition(job_id, "TakeJob")
        job.technician_id = technician_id
        await write_model(self._stub, self._key(job_id), job)
        logger.info(f"Job {job_id} taken by {technician_id}")
        return job

    async def job_done(self, job_id: str) -> Job:
        job = await self._transition(job_id, "JobDone")
        await write_model(self._stub, self._key(job_id), job)
        logger.info(f"Job {job_id} done")
        return job

    async def _transition(self, job_id: str, transition: str) -> Job:
        """Load a job and move it to the next status, without writing it."""
        job = await self.read(job_id)
        required, target = TRANSITIONS[transition]
        if job.status != required:
            logger.warning(f"{transition} rejected for job {job_id} in status {job.status}")
            raise InvalidStateError(
                f"cannot {transition} job {job_id}: status is {JobStatus(job.status).value}, "
                f"expected {required.value}"
            )
        job.status = target
        return job

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def read(self, job_id: str) -> Job:
        job = await read_model(self._stub, self._key(job_id), Job)
        if job is None:
            raise NotFoundError(f"job {job_id} does not exist")
        return job

    async def get_all(self) -> AsyncIterator[Job]:
        """Every job in ledger key order. Each call starts a fresh scan."""
        results = self._stub.get_state_by_partial_composite_key(JOB_OBJECT_TYPE, [])
        try:
            async for kv in results:
                yield Job.from_bytes(kv.value)
        finally:
            await results.close()

    async def list_all(self) -> list[Job]:
        return [job async for job in self.get_all()]
