"""
World State Store: versioned key-value state backed by SQLAlchemy.

Reads always see committed state. Writes reach the store only through
commit_block, which applies a validated write set and records the
transaction in a single database transaction.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass
import logging

from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.database import get_session_context
from ..models import TransactionRecord, ValidationCode, WorldStateEntry
from .rwset import ReadWriteSet, Version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionedValue:
    value: bytes
    version: Version


class WorldStateStore:
    """Committed world state for every channel and chaincode namespace."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        page_size: int = 100,
    ):
        self._session_factory = session_factory
        self._page_size = page_size

    # =========================================================================
    # READS
    # =========================================================================

    async def get(self, channel: str, namespace: str, key: bytes) -> VersionedValue | None:
        """Get the committed value and version of a key."""
        async with get_session_context(self._session_factory) as session:
            entry = await session.get(WorldStateEntry, (channel, namespace, key))
            if entry is None:
                return None
            return VersionedValue(
                value=entry.value,
                version=Version(entry.block_num, entry.tx_num),
            )

    async def scan(
        self,
        channel: str,
        namespace: str,
        start_key: bytes,
        end_key: bytes,
    ) -> AsyncIterator[tuple[bytes, VersionedValue]]:
        """
        Iterate committed keys in [start_key, end_key) in byte order.

        An empty end_key means no upper bound. Results are fetched one page
        at a time, so the iteration is lazy.
        """
        lower = start_key
        inclusive = True
        while True:
            conditions = [
                WorldStateEntry.channel == channel,
                WorldStateEntry.namespace == namespace,
                WorldStateEntry.key >= lower if inclusive else WorldStateEntry.key > lower,
            ]
            if end_key:
                conditions.append(WorldStateEntry.key < end_key)

            query = (
                select(WorldStateEntry)
                .where(and_(*conditions))
                .order_by(WorldStateEntry.key)
                .limit(self._page_size)
            )
            async with get_session_context(self._session_factory) as session:
                result = await session.execute(query)
                page = result.scalars().all()

            for entry in page:
                yield entry.key, VersionedValue(
                    value=entry.value,
                    version=Version(entry.block_num, entry.tx_num),
                )

            if len(page) < self._page_size:
                return
            lower = page[-1].key
            inclusive = False

    async def get_transaction(self, tx_id: str) -> TransactionRecord | None:
        """Get the commit record of a transaction."""
        async with get_session_context(self._session_factory) as session:
            return await session.get(TransactionRecord, tx_id)

    async def get_block_height(self, channel: str) -> int:
        """Number of the last committed block on a channel (0 when empty)."""
        async with get_session_context(self._session_factory) as session:
            result = await session.execute(
                select(func.coalesce(func.max(TransactionRecord.block_num), 0)).where(
                    TransactionRecord.channel == channel
                )
            )
            return result.scalar_one()

    # =========================================================================
    # COMMIT
    # =========================================================================

    async def commit_block(
        self,
        channel: str,
        record: TransactionRecord,
        rwset: ReadWriteSet,
    ) -> None:
        """
        Record a transaction and, when valid, apply its write set.

        Writes are stamped with the transaction's height. Everything happens
        in one database transaction.
        """
        async with get_session_context(self._session_factory) as session:
            if record.validation_code == ValidationCode.VALID:
                for write in rwset.writes:
                    if write.is_delete:
                        await session.execute(
                            delete(WorldStateEntry).where(
                                WorldStateEntry.channel == channel,
                                WorldStateEntry.namespace == rwset.namespace,
                                WorldStateEntry.key == write.key,
                            )
                        )
                    else:
                        await session.merge(
                            WorldStateEntry(
                                channel=channel,
                                namespace=rwset.namespace,
                                key=write.key,
                                value=write.value,
                                block_num=record.block_num,
                                tx_num=record.tx_num,
                            )
                        )
            session.add(record)
            await session.flush()

        logger.debug(
            f"Committed block {record.block_num} on {channel}: tx {record.tx_id} "
            f"({ValidationCode(record.validation_code).name})"
        )
