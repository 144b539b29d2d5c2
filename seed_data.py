#!/usr/bin/env python3
"""
Seed Data Script for Contract Ledger

Runs a realistic "lawn care" scenario against a local ledger network:
- 1 General contract for the connected organization
- 1 Job taken and completed by a technician
- 1 Customer with two mowers and their SLAs:
  - Mower A: Gold SLA, later moved to Silver and re-banded
  - Mower B: Bronze SLA, removed at the end
- A few rejected transactions showing the failure taxonomy

Run with: python seed_data.py
"""

import asyncio
import logging

from sqlalchemy import delete, func, select

from contract_ledger.core.config import get_settings
from contract_ledger.core.database import close_db, get_session_context, init_db
from contract_ledger.models import TransactionRecord, WorldStateEntry
from contract_ledger.network import LocalNetwork
from contract_ledger.services import (
    CustomerContractClient,
    GeneralContractClient,
    TransactionResult,
)

settings = get_settings()

TECHNICIAN_ID = "Org2MSP"
JOB_ID = "9"


def report(label: str, result: TransactionResult) -> None:
    """Print one transaction outcome."""
    if result.ok:
        value = result.value
        if hasattr(value, "to_bytes"):
            value = value.to_bytes().decode()
        elif isinstance(value, list):
            value = f"{len(value)} item(s)"
        print(f"   ✓ {label}" + (f": {value}" if value is not None else ""))
    else:
        failure = result.failure
        print(f"   ✗ {label}: {failure.kind.value} ({failure.domain_reason or failure.message})")


async def seed_ledger():
    """Main seeding function."""
    logging.basicConfig(level=settings.log_level.upper())

    await init_db()
    print(f"🌱 Starting {settings.app_name} seed...")

    async with get_session_context() as session:
        count = await session.scalar(select(func.count()).select_from(TransactionRecord))
    if count:
        print("⚠️  Ledger already has transactions. Clearing existing data...")
        await clear_ledger()

    async with LocalNetwork(settings=settings) as network:
        gateway = await network.connect()
        general = GeneralContractClient(gateway)
        customers = CustomerContractClient(gateway)

        # =================================================================
        # GENERAL CONTRACT
        # =================================================================
        print(f"\n📜 Creating general contract for {gateway.msp_id}...")
        report("CreateGeneralContract", await general.create_general_contract())
        report("ReadGeneralContract", await general.read_general_contract(gateway.msp_id))

        # =================================================================
        # JOBS
        # =================================================================
        print("\n🛠️  Running a job through its lifecycle...")
        report("CreateJob", await general.create_job(TECHNICIAN_ID, JOB_ID, 5, "Tomoko", 300))
        report("TakeJob", await general.take_job(JOB_ID, TECHNICIAN_ID))
        report("GetAllJobs", await general.get_all_jobs())
        report("JobDone", await general.job_done(JOB_ID))
        report("ReadJob", await general.read_job(JOB_ID))

        # =================================================================
        # CUSTOMERS AND SLAs
        # =================================================================
        print("\n🏡 Creating customer and mower SLAs...")
        report("CreateCustomer", await customers.create_customer("customer-1"))
        report("CreateMower A", await customers.create_mower("customer-1", "mower-a", "Gold", 5.5, 7.0, 3.0))
        report("CreateMower B", await customers.create_mower("customer-1", "mower-b", "Bronze", 4.0, 6.0, 2.0))
        report("EvaluateSLA", await customers.evaluate_sla("Gold", 5.5, 7.0, 3.0))

        print("\n✏️  Updating mower A...")
        report("UpdateServiceLevel", await customers.update_service_level("customer-1", "mower-a", "Silver"))
        report("UpdateGrassLengthInterval", await customers.update_grass_length_interval("customer-1", "mower-a", 6.0, 5.0))
        report("ReadSLA", await customers.read_sla("mower-a"))
        report("ReadServiceLevel", await customers.read_service_level("mower-a"))

        print("\n🗑️  Removing mower B...")
        report("RemoveMowerSLA", await customers.remove_mower_sla("customer-1", "mower-b"))
        report("GetAllSLA", await customers.get_all_sla("customer-1"))

        # =================================================================
        # REJECTED TRANSACTIONS
        # =================================================================
        print("\n🚫 Transactions the ledger rejects...")
        report("TakeJob (already done)", await general.take_job(JOB_ID, TECHNICIAN_ID))
        report("CreateCustomer (duplicate)", await customers.create_customer("customer-1"))
        report("CreateMower (target > max)", await customers.create_mower("customer-1", "mower-c", "Gold", 8.0, 7.0, 3.0))
        report("ReadSLA (removed)", await customers.read_sla("mower-b"))

        customer = await customers.read_customer("customer-1")

    await close_db()

    print("\n" + "=" * 60)
    print("✅ LEDGER SEEDED SUCCESSFULLY!")
    print("=" * 60)
    print(f"""
📊 Summary:
   • General contract: {gateway.msp_id}
   • Job {JOB_ID}: Open → Taken → Done (technician {TECHNICIAN_ID})
   • Customer customer-1 with {len(customer.value.slas) if customer.ok else '?'} SLA(s)

🗄️  World state: {settings.database_url}
""")


async def clear_ledger():
    """Clear the world state and transaction history."""
    async with get_session_context() as session:
        for model in (WorldStateEntry, TransactionRecord):
            await session.execute(delete(model))
    print("   ✓ Cleared existing data")


if __name__ == "__main__":
    asyncio.run(seed_ledger())
