"""Shared fixtures: a per-test world state and a connected local network."""

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from contract_ledger.core.config import Settings
from contract_ledger.core.database import build_session_factory, close_db, init_db
from contract_ledger.ledger import (
    ChaincodeStub,
    CommitStatus,
    Committer,
    Envelope,
    TransactionProposal,
    WorldStateStore,
)
from contract_ledger.network import LocalNetwork
from contract_ledger.services import CustomerContractClient, GeneralContractClient


@pytest.fixture
def settings() -> Settings:
    """Two endorsing organizations and short timeouts."""
    return Settings(
        _env_file=None,
        msp_id="Org1MSP",
        endorsing_peers_str=(
            "peer0.org1.example.com:7051=Org1MSP,"
            "peer0.org2.example.com:9051=Org2MSP"
        ),
        evaluate_timeout=2.0,
        endorse_timeout=2.0,
        submit_timeout=2.0,
        commit_status_timeout=2.0,
        range_page_size=2,
    )


@pytest.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await init_db(engine)
    yield engine
    await close_db(engine)


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
def store(session_factory, settings: Settings) -> WorldStateStore:
    return WorldStateStore(session_factory, page_size=settings.range_page_size)


@pytest.fixture
def make_stub(store: WorldStateStore):
    """Build a fresh simulation stub on the customer namespace by default."""
    counter = iter(range(1, 1_000_000))

    def factory(
        namespace: str = "customer",
        channel: str = "customer",
        creator_msp_id: str = "Org1MSP",
    ) -> ChaincodeStub:
        return ChaincodeStub(
            store=store,
            channel=channel,
            namespace=namespace,
            tx_id=f"tx-{next(counter)}",
            creator_msp_id=creator_msp_id,
        )

    return factory


@pytest.fixture
def commit(store: WorldStateStore):
    """Validate and commit a simulated stub, as the orderer would."""
    committer = Committer(store)

    async def apply(stub: ChaincodeStub) -> CommitStatus:
        rwset = stub.rwset
        proposal = TransactionProposal(
            tx_id=stub.get_tx_id(),
            channel=stub.get_channel_id(),
            chaincode=rwset.namespace,
            function=stub.function,
            args=stub.args,
            creator_msp_id=stub.get_creator_msp_id(),
        )
        envelope = Envelope(proposal, rwset, b"", endorsements=[stub.get_creator_msp_id()])
        return await committer.commit(envelope)

    return apply


@pytest.fixture
async def network(session_factory, settings: Settings):
    async with LocalNetwork(session_factory, settings) as network:
        yield network


@pytest.fixture
async def gateway(network: LocalNetwork):
    async with await network.connect() as gateway:
        yield gateway


@pytest.fixture
def general_client(gateway) -> GeneralContractClient:
    return GeneralContractClient(gateway)


@pytest.fixture
def customer_client(gateway) -> CustomerContractClient:
    return CustomerContractClient(gateway)
