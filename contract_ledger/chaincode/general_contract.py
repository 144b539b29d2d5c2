"""
GeneralContract Service: one contract record per organization.

The record is keyed by the organization id inside the chaincode namespace,
so there is no process-wide singleton; every organization gets its own
ledger key.
"""

import logging
from typing import TYPE_CHECKING

from ..schemas import GeneralContract
from .errors import AlreadyExistsError, NotFoundError
from .state import entity_key, read_model, require_id, write_model

if TYPE_CHECKING:
    from ..ledger.stub import ChaincodeStub

logger = logging.getLogger(__name__)

GENERAL_CONTRACT_OBJECT_TYPE = "GeneralContract"


class GeneralContractService:
    """Create and read the general contract of an organization."""

    def __init__(self, stub: "ChaincodeStub"):
        self._stub = stub

    def _key(self, org_key: str) -> str:
        return entity_key(self._stub, GENERAL_CONTRACT_OBJECT_TYPE, require_id(org_key, "org key"))

    async def create(self, org_key: str) -> GeneralContract:
        key = self._key(org_key)
        if await self._stub.get_state(key) is not None:
            logger.warning(f"General contract for {org_key} already exists")
            raise AlreadyExistsError(f"general contract for {org_key} already exists")

        contract = GeneralContract(org_id=org_key)
        await write_model(self._stub, key, contract)
        logger.info(f"Created general contract for {org_key} in tx {self._stub.get_tx_id()}")
        return contract

    async def create_for_creator(self) -> GeneralContract:
        """Create the contract of the organization that signed the proposal."""
        return await self.create(self._stub.get_creator_msp_id())

    async def read(self, org_key: str) -> GeneralContract:
        contract = await read_model(self._stub, self._key(org_key), GeneralContract)
        if contract is None:
            raise NotFoundError(f"general contract for {org_key} does not exist")
        return contract
