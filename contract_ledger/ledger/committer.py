"""
Ordering and Commit: serializes endorsed transactions into blocks.

Every submitted transaction is ordered, validated against the current world
state and recorded, valid or not. Validation is optimistic concurrency
control: a transaction whose reads are no longer current is rejected, never
retried.
"""

import asyncio
from dataclasses import dataclass, field
import logging

from ..models import TransactionRecord, ValidationCode
from .errors import CommitStatusError, StatusCode, SubmitError
from .peer import TransactionProposal
from .rwset import KVRead, RangeQueryInfo, ReadWriteSet
from .store import WorldStateStore

logger = logging.getLogger(__name__)


@dataclass
class Envelope:
    """An endorsed transaction ready for ordering."""

    proposal: TransactionProposal
    rwset: ReadWriteSet
    payload: bytes
    endorsements: list[str] = field(default_factory=list)  # endorsing MSP ids

    @property
    def tx_id(self) -> str:
        return self.proposal.tx_id


@dataclass(frozen=True)
class CommitStatus:
    """Final validation result of a transaction."""

    transaction_id: str
    code: ValidationCode
    block_number: int

    @property
    def successful(self) -> bool:
        return self.code == ValidationCode.VALID


# =============================================================================
# COMMITTER
# =============================================================================


class Committer:
    """Validates transactions and applies their write sets, one at a time."""

    def __init__(self, store: WorldStateStore):
        self.store = store
        self._lock = asyncio.Lock()
        self._heights: dict[str, int] = {}

    async def commit(self, envelope: Envelope) -> CommitStatus:
        """Validate an envelope and commit it in its own block."""
        channel = envelope.proposal.channel

        async with self._lock:
            if await self.store.get_transaction(envelope.tx_id) is not None:
                logger.warning(f"Duplicate transaction id {envelope.tx_id} rejected")
                return CommitStatus(envelope.tx_id, ValidationCode.DUPLICATE_TXID, 0)

            code = await self._validate(envelope)
            block_num = await self._next_block(channel)

            record = TransactionRecord(
                tx_id=envelope.tx_id,
                channel=channel,
                namespace=envelope.rwset.namespace,
                function=envelope.proposal.function,
                creator_msp_id=envelope.proposal.creator_msp_id,
                validation_code=int(code),
                block_num=block_num,
                tx_num=0,
            )
            await self.store.commit_block(channel, record, envelope.rwset)
            self._heights[channel] = block_num

        if code != ValidationCode.VALID:
            logger.warning(
                f"Transaction {envelope.tx_id} ({envelope.proposal.function}) "
                f"invalidated in block {block_num}: {code.name}"
            )
        return CommitStatus(envelope.tx_id, code, block_num)

    async def _next_block(self, channel: str) -> int:
        if channel not in self._heights:
            self._heights[channel] = await self.store.get_block_height(channel)
        return self._heights[channel] + 1

    async def _validate(self, envelope: Envelope) -> ValidationCode:
        if not envelope.endorsements:
            return ValidationCode.ENDORSEMENT_POLICY_FAILURE

        channel = envelope.proposal.channel
        namespace = envelope.rwset.namespace

        for read in envelope.rwset.reads:
            if not await self._read_is_current(channel, namespace, read):
                return ValidationCode.MVCC_READ_CONFLICT

        for query in envelope.rwset.range_queries:
            if not await self._range_is_unchanged(channel, namespace, query):
                return ValidationCode.PHANTOM_READ_CONFLICT

        return ValidationCode.VALID

    async def _read_is_current(self, channel: str, namespace: str, read: KVRead) -> bool:
        current = await self.store.get(channel, namespace, read.key)
        current_version = current.version if current else None
        return current_version == read.version

    async def _range_is_unchanged(
        self,
        channel: str,
        namespace: str,
        query: RangeQueryInfo,
    ) -> bool:
        """Re-run a range scan and compare it with what the simulation saw."""
        # A scan abandoned early only covers keys up to the last one it read
        last_key = query.reads[-1].key if query.reads else None
        observed = []
        async for key, versioned in self.store.scan(
            channel, namespace, query.start_key, query.end_key
        ):
            if not query.itr_exhausted and (last_key is None or key > last_key):
                break
            observed.append(KVRead(key, versioned.version))
        return observed == query.reads


# =============================================================================
# ORDERING SERVICE
# =============================================================================


class OrderingService:
    """
    Accepts endorsed transactions and commits them in submission order.

    Commit runs in a background task; callers learn the outcome through the
    future broadcast returns, or by transaction id through wait_for_status.
    Only in-flight transactions are tracked here; resolved ones are read back
    from the transaction log. A non-zero batch timeout delays each block, as a real
    orderer waits to fill a batch.
    """

    def __init__(self, committer: Committer, batch_timeout: float = 0.0):
        self.committer = committer
        self.batch_timeout = batch_timeout
        self._queue: asyncio.Queue[Envelope] | None = None
        self._task: asyncio.Task | None = None
        self._status: dict[str, asyncio.Future[CommitStatus]] = {}

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._queue = asyncio.Queue()
        self._task = asyncio.create_task(self._run())
        logger.info("Ordering service started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

        for tx_id, future in list(self._status.items()):
            if not future.done():
                future.set_exception(
                    CommitStatusError(tx_id, "ordering service stopped", StatusCode.UNAVAILABLE)
                )
        logger.info("Ordering service stopped")

    async def broadcast(self, envelope: Envelope) -> "asyncio.Future[CommitStatus]":
        """Hand an endorsed transaction to the orderer. Returns its status future."""
        if not self.running:
            raise SubmitError(
                envelope.tx_id,
                "ordering service unavailable",
                StatusCode.UNAVAILABLE,
            )
        pending = self._status.get(envelope.tx_id)
        if pending is not None and not pending.done():
            raise SubmitError(
                envelope.tx_id,
                "transaction already submitted",
                StatusCode.ALREADY_EXISTS,
            )

        future = asyncio.get_running_loop().create_future()
        future.add_done_callback(lambda done: self._forget(envelope.tx_id, done))
        self._status[envelope.tx_id] = future
        await self._queue.put(envelope)
        logger.debug(f"Transaction {envelope.tx_id} queued for ordering")
        return future

    @property
    def in_flight(self) -> int:
        """Transactions broadcast but not yet committed or invalidated."""
        return len(self._status)

    def _forget(self, tx_id: str, future: asyncio.Future) -> None:
        # Resolved transactions are answered from the transaction log
        if self._status.get(tx_id) is future:
            del self._status[tx_id]

    async def wait_for_status(self, tx_id: str) -> CommitStatus:
        """Wait until a transaction has been committed or invalidated."""
        future = self._status.get(tx_id)
        if future is not None:
            return await asyncio.shield(future)

        record = await self.committer.store.get_transaction(tx_id)
        if record is None:
            raise CommitStatusError(tx_id, f"transaction {tx_id} not found", StatusCode.NOT_FOUND)
        return CommitStatus(tx_id, record.code, record.block_num)

    async def _run(self) -> None:
        while True:
            envelope = await self._queue.get()
            if self.batch_timeout:
                await asyncio.sleep(self.batch_timeout)

            future = self._status[envelope.tx_id]
            try:
                status = await self.committer.commit(envelope)
            except Exception as e:
                logger.error(f"Failed to commit transaction {envelope.tx_id}: {e}")
                future.set_exception(
                    CommitStatusError(envelope.tx_id, f"commit failed: {e}", StatusCode.UNKNOWN)
                )
            else:
                future.set_result(status)
            finally:
                self._queue.task_done()
