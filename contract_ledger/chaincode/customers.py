"""
Customer/Mower SLA Manager: customers and the SLAs of their mowers.

SLAs live inside their customer's record, in insertion order. Mower ids are
unique across all customers: a MowerSLA index key maps every registered mower
to its owner. Operations that name both a customer and a mower use the
customer id as an ownership check.

Every create and update runs the parameters through the evaluator before
anything is written, so a rejected change leaves the stored record as it was
and AppraisedValue always matches the current parameters.
"""

import logging
from typing import TYPE_CHECKING

from ..schemas import SLA, Customer, ServiceLevel
from .codec import quantize
from .errors import AlreadyExistsError, NotFoundError
from .evaluation import SLAEvaluator, parse_service_level
from .state import entity_key, read_model, require_id, write_model

if TYPE_CHECKING:
    from ..ledger.stub import ChaincodeStub

logger = logging.getLogger(__name__)

CUSTOMER_OBJECT_TYPE = "Customer"
MOWER_INDEX_OBJECT_TYPE = "MowerSLA"


class CustomerSLAManager:
    """CRUD over customers and their mower SLAs."""

    def __init__(self, stub: "ChaincodeStub", evaluator: SLAEvaluator | None = None):
        self._stub = stub
        self._evaluator = evaluator or SLAEvaluator()

    # =========================================================================
    # KEYS
    # =========================================================================

    def _customer_key(self, customer_id: str) -> str:
        return entity_key(
            self._stub, CUSTOMER_OBJECT_TYPE, require_id(customer_id, "customer id")
        )

    def _mower_key(self, mower_id: str) -> str:
        return entity_key(
            self._stub, MOWER_INDEX_OBJECT_TYPE, require_id(mower_id, "mower id")
        )

    # =========================================================================
    # CUSTOMERS
    # =========================================================================

    async def create_customer(self, customer_id: str) -> Customer:
        key = self._customer_key(customer_id)
        if await self._stub.get_state(key) is not None:
            logger.warning(f"Customer {customer_id} already exists")
            raise AlreadyExistsError(f"customer {customer_id} already exists")

        customer = Customer(id=customer_id)
        await write_model(self._stub, key, customer)
        logger.info(f"Created customer {customer_id}")
        return customer

    async def read_customer(self, customer_id: str) -> Customer:
        customer = await read_model(self._stub, self._customer_key(customer_id), Customer)
        if customer is None:
            raise NotFoundError(f"customer {customer_id} does not exist")
        return customer

    async def get_all_sla(self, customer_id: str) -> list[SLA]:
        customer = await self.read_customer(customer_id)
        return customer.slas

    # =========================================================================
    # MOWER SLAs
    # =========================================================================

    async def create_mower_sla(
        self,
        customer_id: str,
        mower_id: str,
        service_level: ServiceLevel | str,
        target: float,
        max_length: float,
        min_length: float,
    ) -> SLA:
        """Attach a new SLA for a mower to a customer."""
        customer = await self.read_customer(customer_id)
        mower_key = self._mower_key(mower_id)

        owner = await self._stub.get_state(mower_key)
        if owner is not None or customer.find_sla(mower_id) is not None:
            logger.warning(f"SLA for mower {mower_id} already exists")
            raise AlreadyExistsError(f"SLA for mower {mower_id} already exists")

        sla = self._appraise(
            SLA(
                id=mower_id,
                service_level=parse_service_level(service_level),
                target_grass_length=target,
                max_grass_length=max_length,
                min_grass_length=min_length,
                appraised_value=0,
            )
        )
        customer.slas.append(sla)
        await write_model(self._stub, self._customer_key(customer_id), customer)
        await self._stub.put_state(mower_key, customer_id.encode())
        logger.info(
            f"Created SLA for mower {mower_id} of customer {customer_id} "
            f"(appraised {sla.appraised_value})"
        )
        return sla

    async def update_service_level(
        self,
        customer_id: str,
        mower_id: str,
        service_level: ServiceLevel | str,
    ) -> SLA:
        level = parse_service_level(service_level)
        return await self._update(customer_id, mower_id, service_level=level)

    async def update_target_grass_length(
        self,
        customer_id: str,
        mower_id: str,
        target: float,
    ) -> SLA:
        return await self._update(customer_id, mower_id, target_grass_length=target)

    async def update_grass_length_interval(
        self,
        customer_id: str,
        mower_id: str,
        max_length: float,
        min_length: float,
    ) -> SLA:
        return await self._update(
            customer_id,
            mower_id,
            max_grass_length=max_length,
            min_grass_length=min_length,
        )

    async def remove_mower_sla(self, customer_id: str, mower_id: str) -> None:
        customer, index = await self._locate(customer_id, mower_id)
        del customer.slas[index]
        await write_model(self._stub, self._customer_key(customer_id), customer)
        await self._stub.del_state(self._mower_key(mower_id))
        logger.info(f"Removed SLA for mower {mower_id} of customer {customer_id}")

    # =========================================================================
    # SLA QUERIES
    # =========================================================================

    async def read_sla(self, mower_id: str) -> SLA:
        """Look up a mower's SLA through the ownership index."""
        owner = await self._stub.get_state(self._mower_key(mower_id))
        if owner is None:
            raise NotFoundError(f"SLA for mower {mower_id} does not exist")
        customer = await self.read_customer(owner.decode())
        index = customer.find_sla(mower_id)
        if index is None:
            raise NotFoundError(f"SLA for mower {mower_id} does not exist")
        return customer.slas[index]

    async def read_service_level(self, mower_id: str) -> str:
        sla = await self.read_sla(mower_id)
        return ServiceLevel(sla.service_level).value

    # =========================================================================
    # INTERNAL
    # =========================================================================

    async def _locate(self, customer_id: str, mower_id: str) -> tuple[Customer, int]:
        customer = await self.read_customer(customer_id)
        index = customer.find_sla(mower_id)
        if index is None:
            raise NotFoundError(
                f"customer {customer_id} has no SLA for mower {mower_id}"
            )
        return customer, index

    async def _update(self, customer_id: str, mower_id: str, **changes) -> SLA:
        """Apply field changes to one SLA and re-appraise it before writing."""
        customer, index = await self._locate(customer_id, mower_id)
        sla = self._appraise(customer.slas[index].model_copy(update=changes))
        customer.slas[index] = sla
        await write_model(self._stub, self._customer_key(customer_id), customer)
        logger.info(
            f"Updated SLA for mower {mower_id} of customer {customer_id}: "
            f"{sorted(changes)} (appraised {sla.appraised_value})"
        )
        return sla

    def _appraise(self, sla: SLA) -> SLA:
        """Quantize the lengths and recompute AppraisedValue. Raises on an invalid SLA."""
        places = self._evaluator.places
        target = float(quantize(sla.target_grass_length, places))
        max_length = float(quantize(sla.max_grass_length, places))
        min_length = float(quantize(sla.min_grass_length, places))
        value = self._evaluator.evaluate(sla.service_level, target, max_length, min_length)
        return sla.model_copy(
            update={
                "target_grass_length": target,
                "max_grass_length": max_length,
                "min_grass_length": min_length,
                "appraised_value": value,
            }
        )
