"""
Gateway: client access to the ledger network for one identity.

Mirrors the shape of a fabric-gateway client:

    gateway = await connect(msp_id, peers, orderer, settings)
    contract = gateway.get_network("mychannel").get_contract("gc")
    await contract.submit_transaction("TakeJob", "9", "Org1MSP")

Every network call is bounded by the configured timeout. A submitted
transaction is endorsed by every peer, ordered, and then awaited until its
commit status is known.
"""

import asyncio
from typing import Awaitable, Sequence
import logging

from ..core.config import Settings, get_settings
from ..core.security import compute_transaction_id, new_nonce
from .committer import CommitStatus, Envelope, OrderingService
from .errors import (
    CommitError,
    CommitStatusError,
    EndorseError,
    ErrorDetail,
    GatewayError,
    StatusCode,
    SubmitError,
)
from .peer import Peer, ProposalResponse, TransactionProposal

logger = logging.getLogger(__name__)


# =============================================================================
# FINE-GRAINED TRANSACTION FLOW
# =============================================================================


class SubmittedTransaction:
    """A transaction handed to the orderer, awaiting its commit status."""

    def __init__(
        self,
        gateway: "Gateway",
        transaction_id: str,
        result: bytes,
        status: "asyncio.Future[CommitStatus]",
    ):
        self._gateway = gateway
        self.transaction_id = transaction_id
        self.result = result
        self._status = status

    async def get_status(self) -> CommitStatus:
        return await self._gateway.await_status(
            self.transaction_id, asyncio.shield(self._status)
        )


class Transaction:
    """An endorsed transaction, ready to submit."""

    def __init__(self, gateway: "Gateway", envelope: Envelope):
        self._gateway = gateway
        self._envelope = envelope

    @property
    def transaction_id(self) -> str:
        return self._envelope.tx_id

    @property
    def result(self) -> bytes:
        return self._envelope.payload

    async def submit(self) -> SubmittedTransaction:
        settings = self._gateway.settings
        try:
            status = await asyncio.wait_for(
                self._gateway.orderer.broadcast(self._envelope),
                timeout=settings.submit_timeout,
            )
        except TimeoutError as e:
            raise SubmitError(
                self.transaction_id,
                "timed out submitting transaction to the orderer",
                StatusCode.DEADLINE_EXCEEDED,
            ) from e
        logger.info(f"Submitted transaction {self.transaction_id} ({self._envelope.proposal.function})")
        return SubmittedTransaction(self._gateway, self.transaction_id, self.result, status)


class Proposal:
    """A transaction proposal for a single chaincode function call."""

    def __init__(self, gateway: "Gateway", proposal: TransactionProposal):
        self._gateway = gateway
        self._proposal = proposal

    @property
    def transaction_id(self) -> str:
        return self._proposal.tx_id

    async def evaluate(self) -> bytes:
        """Run the proposal on one peer without submitting it."""
        peer = self._gateway.evaluation_peer()
        try:
            response = await asyncio.wait_for(
                peer.process_proposal(self._proposal),
                timeout=self._gateway.settings.evaluate_timeout,
            )
        except TimeoutError as e:
            raise GatewayError(
                "evaluate call timed out", StatusCode.DEADLINE_EXCEEDED
            ) from e

        if not response.ok:
            raise GatewayError(
                "evaluate call to endorser returned error: " + response.message,
                StatusCode.UNKNOWN,
                [_detail(response)],
            )
        return response.payload

    async def endorse(self) -> Transaction:
        """Collect endorsements from every peer; they must all agree."""
        try:
            responses = await asyncio.wait_for(
                asyncio.gather(
                    *(peer.process_proposal(self._proposal) for peer in self._gateway.peers)
                ),
                timeout=self._gateway.settings.endorse_timeout,
            )
        except TimeoutError as e:
            raise EndorseError(
                self.transaction_id,
                "endorse call timed out",
                StatusCode.DEADLINE_EXCEEDED,
            ) from e

        failed = [r for r in responses if not r.ok]
        if failed:
            raise EndorseError(
                self.transaction_id,
                "failed to endorse transaction, see attached details for more info",
                StatusCode.ABORTED,
                [_detail(r) for r in failed],
            )

        first = responses[0]
        digest = first.rwset.digest()
        for other in responses[1:]:
            if other.payload != first.payload or other.rwset.digest() != digest:
                raise EndorseError(
                    self.transaction_id,
                    "ProposalResponsePayloads do not match",
                    StatusCode.ABORTED,
                )

        return Transaction(
            self._gateway,
            Envelope(
                proposal=self._proposal,
                rwset=first.rwset,
                payload=first.payload,
                endorsements=[r.msp_id for r in responses],
            ),
        )


def _detail(response: ProposalResponse) -> ErrorDetail:
    return ErrorDetail(
        address=response.address,
        msp_id=response.msp_id,
        message=response.message,
        reason=response.reason,
    )


# =============================================================================
# NETWORK / CONTRACT
# =============================================================================


class Contract:
    """A chaincode deployed on a channel."""

    def __init__(self, gateway: "Gateway", channel: str, chaincode: str):
        self._gateway = gateway
        self.channel = channel
        self.chaincode = chaincode

    def new_proposal(self, function: str, *args: str) -> Proposal:
        msp_id = self._gateway.msp_id
        return Proposal(
            self._gateway,
            TransactionProposal(
                tx_id=compute_transaction_id(new_nonce(), msp_id),
                channel=self.channel,
                chaincode=self.chaincode,
                function=function,
                args=tuple(args),
                creator_msp_id=msp_id,
            ),
        )

    async def evaluate_transaction(self, function: str, *args: str) -> bytes:
        """Query the ledger; nothing is submitted."""
        return await self.new_proposal(function, *args).evaluate()

    async def submit_transaction(self, function: str, *args: str) -> bytes:
        """Endorse, submit and wait for the transaction to commit."""
        transaction = await self.new_proposal(function, *args).endorse()
        submitted = await transaction.submit()
        status = await submitted.get_status()
        if not status.successful:
            raise CommitError(status.transaction_id, status.code)
        return submitted.result


class Network:
    """A channel as seen through the gateway."""

    def __init__(self, gateway: "Gateway", channel: str):
        self._gateway = gateway
        self.channel = channel

    def get_contract(self, chaincode: str) -> Contract:
        return Contract(self._gateway, self.channel, chaincode)

    async def get_commit_status(self, transaction_id: str) -> CommitStatus:
        return await self._gateway.get_commit_status(transaction_id)


# =============================================================================
# GATEWAY
# =============================================================================


class Gateway:
    """Connection to the network for one client identity."""

    def __init__(
        self,
        msp_id: str,
        peers: Sequence[Peer],
        orderer: OrderingService,
        settings: Settings,
    ):
        if not peers:
            raise ValueError("a gateway needs at least one endorsing peer")
        self.msp_id = msp_id
        self.peers = list(peers)
        self.orderer = orderer
        self.settings = settings

    def get_network(self, channel: str) -> Network:
        return Network(self, channel)

    def evaluation_peer(self) -> Peer:
        """Prefer a peer of the client's own organization."""
        for peer in self.peers:
            if peer.msp_id == self.msp_id:
                return peer
        return self.peers[0]

    async def get_commit_status(self, transaction_id: str) -> CommitStatus:
        return await self.await_status(
            transaction_id, self.orderer.wait_for_status(transaction_id)
        )

    async def await_status(
        self, transaction_id: str, status: Awaitable[CommitStatus]
    ) -> CommitStatus:
        """Wait for a commit status within the commit-status deadline."""
        try:
            return await asyncio.wait_for(
                status,
                timeout=self.settings.commit_status_timeout,
            )
        except TimeoutError as e:
            raise CommitStatusError(
                transaction_id,
                "timed out waiting for commit status",
                StatusCode.DEADLINE_EXCEEDED,
            ) from e

    async def close(self) -> None:
        logger.debug(f"Gateway for {self.msp_id} closed")

    async def __aenter__(self) -> "Gateway":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


async def connect(
    msp_id: str,
    peers: Sequence[Peer],
    orderer: OrderingService,
    settings: Settings | None = None,
) -> Gateway:
    """Connect a client identity to the network."""
    settings = settings or get_settings()
    await orderer.start()
    logger.info(f"Gateway connected for {msp_id} with {len(peers)} endorsing peer(s)")
    return Gateway(msp_id, peers, orderer, settings)
