"""
Chaincode deployments: binds transaction names to the managers.

Every route creates its manager per invocation, bound to that invocation's
stub. The general chaincode carries general contracts and jobs; the customer
chaincode carries customers, SLAs and SLA evaluation.
"""

from typing import TYPE_CHECKING

from ..core.config import Settings, get_settings
from .codec import decimal_arg, parse_id, parse_int, parse_text
from .customers import CustomerSLAManager
from .evaluation import SLAEvaluator
from .general_contract import GeneralContractService
from .jobs import JobLifecycleManager
from .router import Chaincode

if TYPE_CHECKING:
    from ..ledger.stub import ChaincodeStub


def build_general_chaincode(settings: Settings | None = None) -> Chaincode:
    settings = settings or get_settings()
    _, name = settings.general_route
    decimal = decimal_arg(settings.decimal_places)
    chaincode = Chaincode(name)

    async def create_general_contract(stub: "ChaincodeStub"):
        return await GeneralContractService(stub).create_for_creator()

    async def read_general_contract(stub: "ChaincodeStub", org_key: str):
        return await GeneralContractService(stub).read(org_key)

    async def create_job(
        stub: "ChaincodeStub",
        technician_org: str,
        job_id: str,
        quantity: int,
        description: str,
        price: float,
    ):
        return await JobLifecycleManager(stub).create(
            job_id, technician_org, quantity, description, price
        )

    async def read_job(stub: "ChaincodeStub", job_id: str):
        return await JobLifecycleManager(stub).read(job_id)

    async def take_job(stub: "ChaincodeStub", job_id: str, technician_id: str):
        await JobLifecycleManager(stub).take_job(job_id, technician_id)

    async def job_done(stub: "ChaincodeStub", job_id: str):
        await JobLifecycleManager(stub).job_done(job_id)

    async def get_all_jobs(stub: "ChaincodeStub"):
        return await JobLifecycleManager(stub).list_all()

    chaincode.add_route("CreateGeneralContract", create_general_contract)
    chaincode.add_route("ReadGeneralContract", read_general_contract, parse_id)
    # "Create" is the name older clients submit job creation under
    for name in ("CreateJob", "Create"):
        chaincode.add_route(
            name, create_job, parse_id, parse_id, parse_int, parse_text, decimal
        )
    chaincode.add_route("ReadJob", read_job, parse_id)
    chaincode.add_route("TakeJob", take_job, parse_id, parse_id)
    chaincode.add_route("JobDone", job_done, parse_id)
    chaincode.add_route("GetAllJobs", get_all_jobs)
    return chaincode


def build_customer_chaincode(
    settings: Settings | None = None,
    evaluator: SLAEvaluator | None = None,
) -> Chaincode:
    settings = settings or get_settings()
    evaluator = evaluator or SLAEvaluator.from_settings(settings)
    _, name = settings.customer_route
    decimal = decimal_arg(settings.decimal_places)
    chaincode = Chaincode(name)

    def manager(stub: "ChaincodeStub") -> CustomerSLAManager:
        return CustomerSLAManager(stub, evaluator)

    async def create_customer(stub, customer_id):
        await manager(stub).create_customer(customer_id)

    async def create_mower(stub, customer_id, mower_id, level, target, max_length, min_length):
        await manager(stub).create_mower_sla(
            customer_id, mower_id, level, target, max_length, min_length
        )

    async def update_service_level(stub, customer_id, mower_id, level):
        await manager(stub).update_service_level(customer_id, mower_id, level)

    async def update_target(stub, customer_id, mower_id, target):
        await manager(stub).update_target_grass_length(customer_id, mower_id, target)

    async def update_interval(stub, customer_id, mower_id, max_length, min_length):
        await manager(stub).update_grass_length_interval(
            customer_id, mower_id, max_length, min_length
        )

    async def remove_mower(stub, customer_id, mower_id):
        await manager(stub).remove_mower_sla(customer_id, mower_id)

    async def evaluate_sla(stub, level, target, max_length, min_length):
        return evaluator.evaluate(level, target, max_length, min_length)

    async def read_sla(stub, mower_id):
        return await manager(stub).read_sla(mower_id)

    async def read_service_level(stub, mower_id):
        return await manager(stub).read_service_level(mower_id)

    async def read_customer(stub, customer_id):
        return await manager(stub).read_customer(customer_id)

    async def get_all_sla(stub, customer_id):
        return await manager(stub).get_all_sla(customer_id)

    chaincode.add_route("CreateCustomer", create_customer, parse_id)
    chaincode.add_route(
        "CreateMower", create_mower,
        parse_id, parse_id, parse_text, decimal, decimal, decimal,
    )
    chaincode.add_route("UpdateServiceLevel", update_service_level, parse_id, parse_id, parse_text)
    chaincode.add_route("UpdateTargetGrassLength", update_target, parse_id, parse_id, decimal)
    chaincode.add_route(
        "UpdateGrassLengthInterval", update_interval, parse_id, parse_id, decimal, decimal
    )
    chaincode.add_route("RemoveMowerSLA", remove_mower, parse_id, parse_id)
    chaincode.add_route("EvaluateSLA", evaluate_sla, parse_text, decimal, decimal, decimal)
    chaincode.add_route("ReadSLA", read_sla, parse_id)
    chaincode.add_route("ReadServiceLevel", read_service_level, parse_id)
    chaincode.add_route("ReadCustomer", read_customer, parse_id)
    chaincode.add_route("GetAllSLA", get_all_sla, parse_id)
    return chaincode
