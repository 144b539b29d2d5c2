"""
Local Network: assembles a ledger network from settings.

One world state store is shared by every peer; each configured endorsing peer
gets both default chaincodes installed on their channels. Clients connect
through connect(), one gateway per identity, all sharing one orderer.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .chaincode import SLAEvaluator, build_customer_chaincode, build_general_chaincode
from .core.config import Settings, get_settings
from .core.database import async_session_factory
from .ledger import Committer, Gateway, OrderingService, Peer, WorldStateStore, connect

logger = logging.getLogger(__name__)


class LocalNetwork:
    """Peers, orderer and chaincode deployments of a local ledger network."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        settings: Settings | None = None,
        evaluator: SLAEvaluator | None = None,
    ):
        self.settings = settings or get_settings()
        self.store = WorldStateStore(
            session_factory or async_session_factory,
            page_size=self.settings.range_page_size,
        )
        self.orderer = OrderingService(
            Committer(self.store),
            batch_timeout=self.settings.batch_timeout,
        )

        peers = self.settings.endorsing_peers
        if not peers:
            raise ValueError("no endorsing peers configured")

        general_channel, _ = self.settings.general_route
        customer_channel, _ = self.settings.customer_route
        general = build_general_chaincode(self.settings)
        customer = build_customer_chaincode(self.settings, evaluator)
        if (general_channel, general.name) == (customer_channel, customer.name):
            raise ValueError(
                f"general and customer chaincode both route to {general.name} "
                f"on {general_channel}"
            )

        self.peers: list[Peer] = []
        for address, msp_id in peers:
            peer = Peer(address, msp_id, self.store)
            peer.install(general_channel, general)
            peer.install(customer_channel, customer)
            self.peers.append(peer)

    async def connect(self, msp_id: str | None = None) -> Gateway:
        """Connect a client identity; defaults to the configured MSP id."""
        return await connect(
            msp_id or self.settings.msp_id,
            self.peers,
            self.orderer,
            self.settings,
        )

    async def stop(self) -> None:
        await self.orderer.stop()

    async def __aenter__(self) -> "LocalNetwork":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
