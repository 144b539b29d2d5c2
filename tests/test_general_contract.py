"""Tests for the GeneralContract Service."""

import pytest

from contract_ledger.chaincode import AlreadyExistsError, GeneralContractService, NotFoundError


@pytest.fixture
def gc_stub(make_stub):
    def factory(creator_msp_id: str = "Org1MSP"):
        return make_stub(namespace="gc", channel="mychannel", creator_msp_id=creator_msp_id)

    return factory


class TestGeneralContract:
    async def test_create_and_read(self, gc_stub, commit):
        stub = gc_stub()
        created = await GeneralContractService(stub).create("Org1MSP")
        await commit(stub)

        contract = await GeneralContractService(gc_stub()).read("Org1MSP")

        assert contract == created
        assert contract.to_bytes() == b'{"OrgID":"Org1MSP"}'

    async def test_create_twice_fails(self, gc_stub, commit):
        stub = gc_stub()
        await GeneralContractService(stub).create("Org1MSP")
        await commit(stub)

        with pytest.raises(AlreadyExistsError):
            await GeneralContractService(gc_stub()).create("Org1MSP")

    async def test_create_within_one_transaction_sees_own_write(self, gc_stub):
        service = GeneralContractService(gc_stub())
        await service.create("Org1MSP")

        with pytest.raises(AlreadyExistsError):
            await service.create("Org1MSP")

    async def test_keyed_per_organization(self, gc_stub, commit):
        for msp_id in ("Org1MSP", "Org2MSP"):
            stub = gc_stub(creator_msp_id=msp_id)
            await GeneralContractService(stub).create_for_creator()
            await commit(stub)

        service = GeneralContractService(gc_stub())
        assert (await service.read("Org1MSP")).org_id == "Org1MSP"
        assert (await service.read("Org2MSP")).org_id == "Org2MSP"

    async def test_read_missing(self, gc_stub):
        with pytest.raises(NotFoundError):
            await GeneralContractService(gc_stub()).read("Org3MSP")
