"""
Tests for the Transaction Result Classifier and the contract clients.

These tests verify:
1. TAXONOMY: Every gateway error maps to exactly one FailureKind
2. RETRY: Only a commit-status timeout is retryable
3. CLIENTS: Typed calls return results, never raise on ledger failures
"""

import asyncio

import pytest

from contract_ledger.ledger import (
    CommitError,
    CommitStatusError,
    EndorseError,
    ErrorDetail,
    GatewayError,
    StatusCode,
    SubmitError,
)
from contract_ledger.models import ValidationCode
from contract_ledger.network import LocalNetwork
from contract_ledger.schemas import JobStatus, ServiceLevel
from contract_ledger.services import (
    CustomerContractClient,
    FailureKind,
    ResultError,
    classify,
)


def detail(reason: str | None = "NOT_FOUND") -> ErrorDetail:
    return ErrorDetail(
        address="peer0.org1.example.com:7051",
        msp_id="Org1MSP",
        message="job 9 does not exist",
        reason=reason,
    )


# =============================================================================
# TEST: CLASSIFY
# =============================================================================


class TestClassify:
    def test_endorse_error(self):
        failure = classify(
            EndorseError("tx1", "failed to endorse", StatusCode.ABORTED, [detail()])
        )

        assert failure.kind == FailureKind.ENDORSEMENT_FAILURE
        assert failure.transaction_id == "tx1"
        assert failure.domain_reason == "NOT_FOUND"
        assert not failure.retryable

    def test_submit_error(self):
        failure = classify(SubmitError("tx1", "unavailable", StatusCode.UNAVAILABLE))

        assert failure.kind == FailureKind.SUBMISSION_FAILURE
        assert failure.status == StatusCode.UNAVAILABLE
        assert not failure.retryable

    def test_commit_status_deadline(self):
        error = CommitStatusError("tx1", "timed out", StatusCode.DEADLINE_EXCEEDED)

        failure = classify(error)

        assert failure.kind == FailureKind.COMMIT_STATUS_TIMEOUT
        assert failure.retryable

    def test_commit_status_timeout_cause(self):
        try:
            try:
                raise TimeoutError()
            except TimeoutError as e:
                raise CommitStatusError("tx1", "waiting", StatusCode.UNKNOWN) from e
        except CommitStatusError as error:
            failure = classify(error)

        assert failure.kind == FailureKind.COMMIT_STATUS_TIMEOUT

    def test_commit_status_other_failure(self):
        failure = classify(CommitStatusError("tx1", "stopped", StatusCode.UNAVAILABLE))

        assert failure.kind == FailureKind.COMMIT_STATUS_FAILURE
        assert not failure.retryable

    def test_commit_rejected(self):
        failure = classify(CommitError("tx1", ValidationCode.MVCC_READ_CONFLICT))

        assert failure.kind == FailureKind.COMMIT_REJECTED
        assert failure.validation_code == ValidationCode.MVCC_READ_CONFLICT
        assert not failure.retryable

    def test_plain_gateway_error(self):
        failure = classify(GatewayError("evaluate failed", details=[detail("INVALID_SLA")]))

        assert failure.kind == FailureKind.UNCLASSIFIED
        assert failure.transaction_id is None
        assert failure.domain_reason == "INVALID_SLA"

    def test_unexpected_exception(self):
        failure = classify(RuntimeError("boom"))

        assert failure.kind == FailureKind.UNCLASSIFIED
        assert "boom" in failure.message

    def test_error_response(self):
        failure = classify(
            EndorseError("tx1", "failed to endorse", StatusCode.ABORTED, [detail()])
        )

        response = failure.to_error_response()

        assert response.error == "ENDORSEMENT_FAILURE"
        assert response.transaction_id == "tx1"
        assert response.details[0].reason == "NOT_FOUND"


# =============================================================================
# TEST: CONTRACT CLIENTS
# =============================================================================


class TestGeneralContractClient:
    async def test_job_lifecycle(self, general_client):
        created = await general_client.create_job("Org2MSP", "9", 5, "Tomoko", 300)
        assert created.ok
        assert created.value.status == JobStatus.OPEN
        assert created.transaction_id

        assert (await general_client.take_job("9", "tech-1")).ok
        assert (await general_client.job_done("9")).ok

        job = (await general_client.read_job("9")).unwrap()
        assert job.status == JobStatus.DONE
        assert job.technician_id == "tech-1"
        assert job.price == 300.0

    async def test_invalid_transition_is_endorsement_failure(self, general_client):
        await general_client.create_job("Org2MSP", "9", 5, "Tomoko", 300)

        result = await general_client.job_done("9")

        assert not result.ok
        assert result.failure.kind == FailureKind.ENDORSEMENT_FAILURE
        assert result.failure.domain_reason == "INVALID_STATE"
        assert result.transaction_id == result.failure.transaction_id

    async def test_general_contract_for_connected_org(self, general_client):
        created = await general_client.create_general_contract()
        assert created.value.org_id == "Org1MSP"

        again = await general_client.create_general_contract()
        assert again.failure.domain_reason == "ALREADY_EXISTS"

        read = await general_client.read_general_contract("Org1MSP")
        assert read.value == created.value

    async def test_get_all_jobs(self, general_client):
        for job_id in ("2", "1"):
            await general_client.create_job("Org2MSP", job_id, 1, "edge", 10.5)

        jobs = (await general_client.get_all_jobs()).unwrap()

        assert [job.id for job in jobs] == ["1", "2"]

    async def test_read_missing_job(self, general_client):
        result = await general_client.read_job("missing")

        assert result.failure.kind == FailureKind.UNCLASSIFIED
        assert result.failure.domain_reason == "NOT_FOUND"
        with pytest.raises(ResultError):
            result.unwrap()


class TestCustomerContractClient:
    async def test_sla_round_trip(self, customer_client):
        assert (await customer_client.create_customer("c1")).ok
        assert (await customer_client.create_mower("c1", "m1", ServiceLevel.GOLD, 5.5, 7.0, 3.0)).ok

        sla = (await customer_client.read_sla("m1")).unwrap()
        score = (await customer_client.evaluate_sla("Gold", 5.5, 7.0, 3.0)).unwrap()

        assert sla.appraised_value == score == 320
        assert (sla.target_grass_length, sla.max_grass_length, sla.min_grass_length) == (5.5, 7.0, 3.0)
        assert (await customer_client.read_service_level("m1")).value == "Gold"

    async def test_invalid_sla(self, customer_client):
        await customer_client.create_customer("c1")

        result = await customer_client.create_mower("c1", "m2", "Gold", 8.0, 7.0, 3.0)

        assert result.failure.kind == FailureKind.ENDORSEMENT_FAILURE
        assert result.failure.domain_reason == "INVALID_SLA"

    async def test_oversized_lengths_are_classified(self, customer_client):
        await customer_client.create_customer("c1")

        created = await customer_client.create_mower("c1", "m1", "Gold", 1e30, 2e30, 0.0)
        scored = await customer_client.evaluate_sla("Gold", 1e30, 2e30, 0.0)

        assert created.failure.kind == FailureKind.ENDORSEMENT_FAILURE
        assert created.failure.domain_reason == "VALIDATION_ERROR"
        assert scored.failure.kind == FailureKind.UNCLASSIFIED
        assert scored.failure.domain_reason == "VALIDATION_ERROR"

    async def test_updates_and_removal(self, customer_client):
        await customer_client.create_customer("c1")
        await customer_client.create_mower("c1", "m1", "Gold", 5.5, 7.0, 3.0)

        assert (await customer_client.update_service_level("c1", "m1", "Silver")).ok
        assert (await customer_client.update_target_grass_length("c1", "m1", 4.0)).ok
        assert (await customer_client.update_grass_length_interval("c1", "m1", 5.0, 3.5)).ok

        slas = (await customer_client.get_all_sla("c1")).unwrap()
        assert slas[0].service_level == ServiceLevel.SILVER
        assert (slas[0].max_grass_length, slas[0].min_grass_length) == (5.0, 3.5)

        assert (await customer_client.remove_mower_sla("c1", "m1")).ok
        missing = await customer_client.read_sla("m1")
        assert missing.failure.domain_reason == "NOT_FOUND"

        customer = (await customer_client.read_customer("c1")).unwrap()
        assert customer.slas == []

    async def test_submit_with_orderer_stopped(self, network, customer_client):
        await network.stop()

        result = await customer_client.create_customer("c1")

        assert result.failure.kind == FailureKind.SUBMISSION_FAILURE
        assert result.failure.status == StatusCode.UNAVAILABLE

    async def test_commit_status_timeout_then_recheck(self, session_factory, settings):
        slow = settings.model_copy(update={"batch_timeout": 0.5, "commit_status_timeout": 0.05})

        async with LocalNetwork(session_factory, slow) as network:
            client = CustomerContractClient(await network.connect())

            result = await client.create_customer("c1")
            assert result.failure.kind == FailureKind.COMMIT_STATUS_TIMEOUT
            assert result.failure.retryable

            await asyncio.sleep(0.7)
            status = await client.recheck_status(result.failure)

            assert status.ok
            assert status.value.successful
            assert (await client.read_customer("c1")).ok

    async def test_recheck_refuses_non_retryable(self, customer_client):
        result = await customer_client.read_customer("nobody")

        with pytest.raises(ValueError):
            await customer_client.recheck_status(result.failure)
