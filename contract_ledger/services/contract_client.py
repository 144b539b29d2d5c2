"""
Contract Clients: typed access to the deployed chaincode.

Clients take typed values, encode them for the wire, run the transaction
through the gateway and decode the response. Every call returns a
TransactionResult; gateway failures are classified and logged here, so a
failing transaction never escapes as an exception.
"""

from typing import Any, Callable, TypeVar
import logging

from pydantic import TypeAdapter

from ..chaincode.codec import format_decimal
from ..chaincode.errors import ValidationError
from ..core.config import Settings
from ..ledger import CommitError, CommitStatus, Contract, Gateway, GatewayError
from ..schemas import SLA, Customer, GeneralContract, Job, ServiceLevel
from .classifier import TransactionFailure, TransactionResult, classify, log_failure

logger = logging.getLogger(__name__)

T = TypeVar("T")

_job_list = TypeAdapter(list[Job])
_sla_list = TypeAdapter(list[SLA])


def _level(value: ServiceLevel | str) -> str:
    return value.value if isinstance(value, ServiceLevel) else value


class ContractClient:
    """Runs transactions on one contract and classifies their failures."""

    def __init__(self, gateway: Gateway, channel: str, chaincode: str):
        self.gateway = gateway
        self.contract: Contract = gateway.get_network(channel).get_contract(chaincode)
        self._places = gateway.settings.decimal_places

    def _decimal(self, value: float) -> str:
        try:
            return format_decimal(value, self._places)
        except ValidationError:
            # Peers reject it and the failure comes back classified
            return str(value)

    async def submit(
        self,
        function: str,
        *args: str,
        decode: Callable[[bytes], T] | None = None,
    ) -> TransactionResult[T]:
        """Endorse, submit and await commit of one transaction."""
        proposal = self.contract.new_proposal(function, *args)
        transaction_id = proposal.transaction_id
        try:
            transaction = await proposal.endorse()
            submitted = await transaction.submit()
            status = await submitted.get_status()
            if not status.successful:
                raise CommitError(status.transaction_id, status.code)
        except GatewayError as e:
            return self._failed(function, e, transaction_id)

        logger.info(f"{function} committed in block {status.block_number} (tx {transaction_id})")
        value = decode(submitted.result) if decode else None
        return TransactionResult(value=value, transaction_id=transaction_id)

    async def evaluate(
        self,
        function: str,
        *args: str,
        decode: Callable[[bytes], T],
    ) -> TransactionResult[T]:
        """Query the ledger through one peer; nothing is committed."""
        try:
            payload = await self.contract.evaluate_transaction(function, *args)
        except GatewayError as e:
            return self._failed(function, e, None)
        return TransactionResult(value=decode(payload))

    async def recheck_status(self, failure: TransactionFailure) -> TransactionResult[CommitStatus]:
        """Ask again for the commit status after a commit-status timeout."""
        if not failure.retryable:
            raise ValueError(f"{failure.kind.value} failures cannot be retried")

        try:
            status = await self.gateway.get_commit_status(failure.transaction_id)
            if not status.successful:
                raise CommitError(status.transaction_id, status.code)
        except GatewayError as e:
            return self._failed("commit status", e, failure.transaction_id)
        return TransactionResult(value=status, transaction_id=failure.transaction_id)

    def _failed(
        self,
        function: str,
        error: GatewayError,
        transaction_id: str | None,
    ) -> TransactionResult[Any]:
        failure = classify(error)
        log_failure(function, failure)
        return TransactionResult(
            failure=failure,
            transaction_id=failure.transaction_id or transaction_id,
        )


# =============================================================================
# GENERAL CONTRACTS AND JOBS
# =============================================================================


class GeneralContractClient(ContractClient):
    """General contracts and jobs."""

    def __init__(self, gateway: Gateway, settings: Settings | None = None):
        channel, chaincode = (settings or gateway.settings).general_route
        super().__init__(gateway, channel, chaincode)

    async def create_general_contract(self) -> TransactionResult[GeneralContract]:
        """Create the general contract of the connected organization."""
        return await self.submit("CreateGeneralContract", decode=GeneralContract.from_bytes)

    async def read_general_contract(self, org_key: str) -> TransactionResult[GeneralContract]:
        return await self.evaluate(
            "ReadGeneralContract", org_key, decode=GeneralContract.from_bytes
        )

    async def create_job(
        self,
        technician_org: str,
        job_id: str,
        quantity: int,
        description: str,
        price: float,
    ) -> TransactionResult[Job]:
        return await self.submit(
            "CreateJob",
            technician_org,
            job_id,
            str(quantity),
            description,
            self._decimal(price),
            decode=Job.from_bytes,
        )

    async def read_job(self, job_id: str) -> TransactionResult[Job]:
        return await self.evaluate("ReadJob", job_id, decode=Job.from_bytes)

    async def take_job(self, job_id: str, technician_id: str) -> TransactionResult[None]:
        return await self.submit("TakeJob", job_id, technician_id)

    async def job_done(self, job_id: str) -> TransactionResult[None]:
        return await self.submit("JobDone", job_id)

    async def get_all_jobs(self) -> TransactionResult[list[Job]]:
        return await self.evaluate("GetAllJobs", decode=_job_list.validate_json)


# =============================================================================
# CUSTOMERS AND SLAs
# =============================================================================


class CustomerContractClient(ContractClient):
    """Customers, mower SLAs and SLA evaluation."""

    def __init__(self, gateway: Gateway, settings: Settings | None = None):
        channel, chaincode = (settings or gateway.settings).customer_route
        super().__init__(gateway, channel, chaincode)

    async def create_customer(self, customer_id: str) -> TransactionResult[None]:
        return await self.submit("CreateCustomer", customer_id)

    async def create_mower(
        self,
        customer_id: str,
        mower_id: str,
        service_level: ServiceLevel | str,
        target: float,
        max_length: float,
        min_length: float,
    ) -> TransactionResult[None]:
        return await self.submit(
            "CreateMower",
            customer_id,
            mower_id,
            _level(service_level),
            self._decimal(target),
            self._decimal(max_length),
            self._decimal(min_length),
        )

    async def update_service_level(
        self,
        customer_id: str,
        mower_id: str,
        service_level: ServiceLevel | str,
    ) -> TransactionResult[None]:
        return await self.submit(
            "UpdateServiceLevel", customer_id, mower_id, _level(service_level)
        )

    async def update_target_grass_length(
        self,
        customer_id: str,
        mower_id: str,
        target: float,
    ) -> TransactionResult[None]:
        return await self.submit(
            "UpdateTargetGrassLength", customer_id, mower_id, self._decimal(target)
        )

    async def update_grass_length_interval(
        self,
        customer_id: str,
        mower_id: str,
        max_length: float,
        min_length: float,
    ) -> TransactionResult[None]:
        return await self.submit(
            "UpdateGrassLengthInterval",
            customer_id,
            mower_id,
            self._decimal(max_length),
            self._decimal(min_length),
        )

    async def remove_mower_sla(self, customer_id: str, mower_id: str) -> TransactionResult[None]:
        return await self.submit("RemoveMowerSLA", customer_id, mower_id)

    async def evaluate_sla(
        self,
        service_level: ServiceLevel | str,
        target: float,
        max_length: float,
        min_length: float,
    ) -> TransactionResult[int]:
        return await self.evaluate(
            "EvaluateSLA",
            _level(service_level),
            self._decimal(target),
            self._decimal(max_length),
            self._decimal(min_length),
            decode=lambda payload: int(payload.decode()),
        )

    async def read_sla(self, mower_id: str) -> TransactionResult[SLA]:
        return await self.evaluate("ReadSLA", mower_id, decode=SLA.from_bytes)

    async def read_service_level(self, mower_id: str) -> TransactionResult[str]:
        return await self.evaluate(
            "ReadServiceLevel", mower_id, decode=lambda payload: payload.decode()
        )

    async def read_customer(self, customer_id: str) -> TransactionResult[Customer]:
        return await self.evaluate("ReadCustomer", customer_id, decode=Customer.from_bytes)

    async def get_all_sla(self, customer_id: str) -> TransactionResult[list[SLA]]:
        return await self.evaluate("GetAllSLA", customer_id, decode=_sla_list.validate_json)
