"""
Endorsing Peer: simulates transaction proposals against the world state.

A peer runs the installed chaincode on a fresh stub and returns the response
payload together with the read/write set. Chaincode failures are turned into
error responses here and nowhere else.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
import logging

from ..chaincode.errors import ContractError
from .rwset import ReadWriteSet
from .store import WorldStateStore
from .stub import ChaincodeStub

if TYPE_CHECKING:
    from ..chaincode.router import Chaincode

logger = logging.getLogger(__name__)

STATUS_OK = 200
STATUS_ERROR = 500


@dataclass(frozen=True)
class TransactionProposal:
    """A request to run one chaincode function."""

    tx_id: str
    channel: str
    chaincode: str
    function: str
    args: tuple[str, ...]
    creator_msp_id: str


@dataclass
class ProposalResponse:
    """One peer's answer to a proposal."""

    address: str
    msp_id: str
    status: int
    payload: bytes = b""
    message: str = ""
    reason: str | None = None
    rwset: ReadWriteSet | None = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


class Peer:
    """A peer node of one organization."""

    def __init__(self, address: str, msp_id: str, store: WorldStateStore):
        self.address = address
        self.msp_id = msp_id
        self._store = store
        self._chaincodes: dict[tuple[str, str], "Chaincode"] = {}

    def install(self, channel: str, chaincode: "Chaincode") -> None:
        """Install and approve a chaincode definition on a channel."""
        self._chaincodes[(channel, chaincode.name)] = chaincode
        logger.info(f"Installed chaincode {chaincode.name} on {channel} at {self.address}")

    def get_chaincode(self, channel: str, name: str) -> "Chaincode | None":
        return self._chaincodes.get((channel, name))

    async def process_proposal(self, proposal: TransactionProposal) -> ProposalResponse:
        """Simulate a proposal and return the endorsement response."""
        chaincode = self.get_chaincode(proposal.channel, proposal.chaincode)
        if chaincode is None:
            return self._error(
                f"chaincode {proposal.chaincode} is not installed on channel {proposal.channel}",
                reason=None,
            )

        stub = ChaincodeStub(
            store=self._store,
            channel=proposal.channel,
            namespace=proposal.chaincode,
            tx_id=proposal.tx_id,
            creator_msp_id=proposal.creator_msp_id,
            function=proposal.function,
            args=proposal.args,
        )

        try:
            payload = await chaincode.invoke(stub, proposal.function, proposal.args)
        except ContractError as e:
            logger.debug(f"{self.address}: {proposal.function} rejected: {e}")
            return self._error(str(e), reason=e.reason)
        except Exception as e:
            # Anything else is a chaincode fault; it still becomes a response
            logger.exception(f"{self.address}: {proposal.function} failed")
            return self._error(f"chaincode execution failed: {e}", reason=None)

        return ProposalResponse(
            address=self.address,
            msp_id=self.msp_id,
            status=STATUS_OK,
            payload=payload,
            rwset=stub.rwset,
        )

    def _error(self, message: str, reason: str | None) -> ProposalResponse:
        return ProposalResponse(
            address=self.address,
            msp_id=self.msp_id,
            status=STATUS_ERROR,
            message=message,
            reason=reason,
        )
