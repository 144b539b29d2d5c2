"""
Tests for the local ledger network.

These tests verify:
1. SIMULATION: Stubs read their own writes and record versions
2. ENDORSEMENT: Peers must agree; chaincode errors carry their reason
3. COMMIT: MVCC and phantom reads are rejected, duplicates detected
4. DEADLINES: Submit and commit-status calls fail with typed errors
"""

import asyncio

import pytest

from contract_ledger.chaincode import Chaincode
from contract_ledger.core.security import new_nonce
from contract_ledger.ledger import (
    CommitError,
    CommitStatusError,
    EndorseError,
    GatewayError,
    StatusCode,
    SubmitError,
)
from contract_ledger.models import ValidationCode
from contract_ledger.network import LocalNetwork
from contract_ledger.schemas import Job


@pytest.fixture
def customer_contract(gateway):
    return gateway.get_network("customer").get_contract("customer")


@pytest.fixture
def gc_contract(gateway):
    return gateway.get_network("mychannel").get_contract("gc")


async def add_mower(contract) -> None:
    await contract.submit_transaction("CreateCustomer", "c1")
    await contract.submit_transaction(
        "CreateMower", "c1", "m1", "Gold", "5.500000", "7.000000", "3.000000"
    )


# =============================================================================
# TEST: SIMULATION
# =============================================================================


class TestChaincodeStub:
    async def test_read_your_writes(self, make_stub):
        stub = make_stub()
        await stub.put_state("k", b"v")

        assert await stub.get_state("k") == b"v"
        await stub.del_state("k")
        assert await stub.get_state("k") is None

    async def test_records_read_versions(self, make_stub, commit):
        stub = make_stub()
        await stub.put_state("k", b"v")
        status = await commit(stub)

        reader = make_stub()
        await reader.get_state("k")
        await reader.get_state("missing")

        reads = {read.key: read.version for read in reader.rwset.reads}
        assert reads[b"k"].block_num == status.block_number
        assert reads[b"missing"] is None

    async def test_empty_value_rejected(self, make_stub):
        with pytest.raises(ValueError):
            await make_stub().put_state("k", b"")

    async def test_composite_keys(self, make_stub):
        stub = make_stub()
        key = stub.create_composite_key("Job", ["9"])

        assert key == "\x00Job\x009\x00"
        with pytest.raises(ValueError):
            stub.create_composite_key("Job", ["bad\x00id"])

    async def test_partial_composite_scan_pages(self, make_stub, commit):
        stub = make_stub()
        for job_id in ("1", "2", "3", "4", "5"):
            await stub.put_state(stub.create_composite_key("Job", [job_id]), job_id.encode())
        await stub.put_state(stub.create_composite_key("Other", ["1"]), b"x")
        await commit(stub)

        reader = make_stub()
        values = [kv.value async for kv in reader.get_state_by_partial_composite_key("Job", [])]

        assert values == [b"1", b"2", b"3", b"4", b"5"]
        assert reader.rwset.range_queries[0].itr_exhausted


# =============================================================================
# TEST: ENDORSEMENT
# =============================================================================


class TestEndorsement:
    async def test_chaincode_error_carries_reason_per_peer(self, gc_contract):
        with pytest.raises(EndorseError) as exc_info:
            await gc_contract.submit_transaction("TakeJob", "missing", "tech-1")

        error = exc_info.value
        assert error.status == StatusCode.ABORTED
        assert [d.msp_id for d in error.details] == ["Org1MSP", "Org2MSP"]
        assert {d.reason for d in error.details} == {"NOT_FOUND"}

    async def test_nondeterministic_chaincode_rejected(self, network, gateway):
        chaincode = Chaincode("dice")

        async def roll(stub):
            return new_nonce()

        chaincode.add_route("Roll", roll)
        for peer in network.peers:
            peer.install("mychannel", chaincode)

        contract = gateway.get_network("mychannel").get_contract("dice")
        with pytest.raises(EndorseError, match="ProposalResponsePayloads do not match"):
            await contract.new_proposal("Roll").endorse()

    async def test_evaluate_does_not_commit(self, customer_contract):
        await customer_contract.evaluate_transaction("CreateCustomer", "c9")

        with pytest.raises(GatewayError) as exc_info:
            await customer_contract.evaluate_transaction("ReadCustomer", "c9")
        assert exc_info.value.details[0].reason == "NOT_FOUND"

    async def test_create_accepts_legacy_job_call(self, gc_contract):
        await gc_contract.submit_transaction("Create", "Org2MSP", "9", "5", "Tomoko", "300")

        job = Job.from_bytes(await gc_contract.evaluate_transaction("ReadJob", "9"))

        assert job.technician_org == "Org2MSP"
        assert (job.quantity, job.description, job.price) == (5, "Tomoko", 300.0)

    async def test_unknown_chaincode(self, gateway):
        contract = gateway.get_network("mychannel").get_contract("missing")

        with pytest.raises(GatewayError, match="not installed"):
            await contract.evaluate_transaction("ReadJob", "1")


# =============================================================================
# TEST: COMMIT VALIDATION
# =============================================================================


class TestCommitValidation:
    async def test_mvcc_read_conflict(self, customer_contract):
        """Two transactions endorsed on the same version: only the first commits."""
        await add_mower(customer_contract)

        first = await customer_contract.new_proposal(
            "UpdateServiceLevel", "c1", "m1", "Silver"
        ).endorse()
        second = await customer_contract.new_proposal(
            "UpdateTargetGrassLength", "c1", "m1", "6.000000"
        ).endorse()

        first_status = await (await first.submit()).get_status()
        second_status = await (await second.submit()).get_status()

        assert first_status.successful
        assert second_status.code == ValidationCode.MVCC_READ_CONFLICT
        assert int(second_status.code) == 11

        sla = await customer_contract.evaluate_transaction("ReadSLA", "m1")
        assert b'"ServiceLevel":"Silver"' in sla
        assert b'"TargetGrassLength":5.5' in sla

    async def test_phantom_read_conflict(self, gc_contract):
        await gc_contract.submit_transaction("CreateJob", "Org2MSP", "1", "5", "Tomoko", "300.000000")
        scan = await gc_contract.new_proposal("GetAllJobs").endorse()

        await gc_contract.submit_transaction("CreateJob", "Org2MSP", "2", "5", "Tomoko", "300.000000")
        status = await (await scan.submit()).get_status()

        assert status.code == ValidationCode.PHANTOM_READ_CONFLICT

    async def test_stale_removal_rejected(self, customer_contract):
        await add_mower(customer_contract)
        stale = await customer_contract.new_proposal("RemoveMowerSLA", "c1", "m1").endorse()
        await customer_contract.submit_transaction("UpdateServiceLevel", "c1", "m1", "Bronze")

        submitted = await stale.submit()
        status = await submitted.get_status()

        assert not status.successful
        error = CommitError(status.transaction_id, status.code)
        assert error.code == ValidationCode.MVCC_READ_CONFLICT
        assert "status code 11" in error.message

    async def test_duplicate_transaction_id(self, customer_contract):
        transaction = await customer_contract.new_proposal("CreateCustomer", "c1").endorse()
        assert (await (await transaction.submit()).get_status()).successful

        status = await (await transaction.submit()).get_status()

        assert status.code == ValidationCode.DUPLICATE_TXID

    async def test_commit_status_of_committed_transaction(self, network, customer_contract):
        transaction = await customer_contract.new_proposal("CreateCustomer", "c1").endorse()
        submitted = await transaction.submit()
        await submitted.get_status()

        other = await network.connect("Org2MSP")
        status = await other.get_network("customer").get_commit_status(transaction.transaction_id)

        assert status.successful

    async def test_resolved_transactions_leave_the_orderer(self, network, gateway, customer_contract):
        transaction = await customer_contract.new_proposal("CreateCustomer", "c1").endorse()
        await (await transaction.submit()).get_status()
        await asyncio.sleep(0)

        assert network.orderer.in_flight == 0
        status = await gateway.get_commit_status(transaction.transaction_id)
        assert status.successful

    async def test_duplicate_keeps_its_own_status(self, network, gateway, customer_contract):
        transaction = await customer_contract.new_proposal("CreateCustomer", "c1").endorse()
        await (await transaction.submit()).get_status()

        resubmitted = await transaction.submit()
        pending = await gateway.get_commit_status(transaction.transaction_id)
        await asyncio.sleep(0)

        assert pending.code == ValidationCode.DUPLICATE_TXID
        assert network.orderer.in_flight == 0
        assert (await resubmitted.get_status()).code == ValidationCode.DUPLICATE_TXID
        # By id, the log answers with the original commit
        assert (await gateway.get_commit_status(transaction.transaction_id)).successful

    async def test_unknown_transaction_status(self, gateway):
        with pytest.raises(CommitStatusError) as exc_info:
            await gateway.get_commit_status("no-such-tx")

        assert exc_info.value.status == StatusCode.NOT_FOUND
        assert not exc_info.value.is_timeout


# =============================================================================
# TEST: DEADLINES AND AVAILABILITY
# =============================================================================


class TestDeadlines:
    async def test_submit_with_orderer_stopped(self, network, customer_contract):
        transaction = await customer_contract.new_proposal("CreateCustomer", "c1").endorse()
        await network.stop()

        with pytest.raises(SubmitError) as exc_info:
            await transaction.submit()

        assert exc_info.value.status == StatusCode.UNAVAILABLE

    async def test_commit_status_timeout(self, session_factory, settings):
        slow = settings.model_copy(update={"batch_timeout": 0.5, "commit_status_timeout": 0.05})

        async with LocalNetwork(session_factory, slow) as network:
            gateway = await network.connect()
            contract = gateway.get_network("customer").get_contract("customer")

            with pytest.raises(CommitStatusError) as exc_info:
                await contract.submit_transaction("CreateCustomer", "c1")

            assert exc_info.value.is_timeout
            assert isinstance(exc_info.value.__cause__, TimeoutError)

            # The transaction still commits; asking again later succeeds
            await asyncio.sleep(0.7)
            status = await gateway.get_commit_status(exc_info.value.transaction_id)
            assert status.successful
