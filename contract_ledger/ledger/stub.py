"""
Chaincode Stub: the isolated working view of one transaction simulation.

Every invocation gets a fresh stub. Reads are served from committed state and
their versions recorded; writes are buffered and only reach the world state
if the transaction later commits. Reads of a key this simulation already
wrote return the buffered value. Range scans always see committed state.
"""

from dataclasses import dataclass

from .rwset import KVRead, KVWrite, RangeQueryInfo, ReadWriteSet
from .store import WorldStateStore

COMPOSITE_KEY_NAMESPACE = "\x00"
MAX_UNICODE_RUNE = "\U0010ffff"


@dataclass(frozen=True)
class KV:
    key: str
    value: bytes


class StateQueryIterator:
    """
    Lazy iterator over a committed key range.

    Keys and versions are recorded in the owning simulation's read/write set
    as they are consumed, so commit validation can detect phantom reads.
    """

    def __init__(
        self,
        store: WorldStateStore,
        channel: str,
        namespace: str,
        info: RangeQueryInfo,
    ):
        self._store = store
        self._channel = channel
        self._namespace = namespace
        self._info = info
        self._scan = None

    def __aiter__(self) -> "StateQueryIterator":
        return self

    async def __anext__(self) -> KV:
        if self._scan is None:
            self._scan = self._store.scan(
                self._channel,
                self._namespace,
                self._info.start_key,
                self._info.end_key,
            )
        try:
            key, versioned = await self._scan.__anext__()
        except StopAsyncIteration:
            self._info.itr_exhausted = True
            raise
        self._info.reads.append(KVRead(key, versioned.version))
        return KV(key.decode(), versioned.value)

    async def close(self) -> None:
        if self._scan is not None:
            await self._scan.aclose()


class ChaincodeStub:
    """Ledger access for a single transaction simulation."""

    def __init__(
        self,
        store: WorldStateStore,
        channel: str,
        namespace: str,
        tx_id: str,
        creator_msp_id: str,
        function: str = "",
        args: tuple[str, ...] = (),
    ):
        self._store = store
        self._channel = channel
        self._namespace = namespace
        self._tx_id = tx_id
        self._creator_msp_id = creator_msp_id
        self.function = function
        self.args = args

        self._reads: dict[bytes, KVRead] = {}
        self._read_values: dict[bytes, bytes | None] = {}
        self._writes: dict[bytes, KVWrite] = {}
        self._range_queries: list[RangeQueryInfo] = []

    # =========================================================================
    # IDENTITY
    # =========================================================================

    def get_tx_id(self) -> str:
        return self._tx_id

    def get_channel_id(self) -> str:
        return self._channel

    def get_creator_msp_id(self) -> str:
        """MSP id of the organization that signed the proposal."""
        return self._creator_msp_id

    # =========================================================================
    # STATE ACCESS
    # =========================================================================

    async def get_state(self, key: str) -> bytes | None:
        """Get the value of a key, as seen by this simulation."""
        raw = self._encode_key(key)
        if raw in self._writes:
            return self._writes[raw].value
        if raw in self._read_values:
            return self._read_values[raw]

        versioned = await self._store.get(self._channel, self._namespace, raw)
        value = versioned.value if versioned else None
        self._reads[raw] = KVRead(raw, versioned.version if versioned else None)
        self._read_values[raw] = value
        return value

    async def put_state(self, key: str, value: bytes) -> None:
        if not value:
            raise ValueError(f"value for key {key!r} must not be empty")
        raw = self._encode_key(key)
        self._writes[raw] = KVWrite(raw, bytes(value))

    async def del_state(self, key: str) -> None:
        raw = self._encode_key(key)
        self._writes[raw] = KVWrite(raw, None)

    def get_state_by_range(self, start_key: str, end_key: str) -> StateQueryIterator:
        """Iterate committed keys in [start_key, end_key); "" leaves a side open."""
        info = RangeQueryInfo(start_key.encode(), end_key.encode())
        self._range_queries.append(info)
        return StateQueryIterator(self._store, self._channel, self._namespace, info)

    def get_state_by_partial_composite_key(
        self,
        object_type: str,
        attributes: list[str],
    ) -> StateQueryIterator:
        """Iterate every composite key that starts with the given prefix."""
        start = self.create_composite_key(object_type, attributes)
        return self.get_state_by_range(start, start + MAX_UNICODE_RUNE)

    # =========================================================================
    # COMPOSITE KEYS
    # =========================================================================

    @staticmethod
    def create_composite_key(object_type: str, attributes: list[str]) -> str:
        parts = [object_type, *attributes]
        for part in parts:
            if COMPOSITE_KEY_NAMESPACE in part or MAX_UNICODE_RUNE in part:
                raise ValueError(f"composite key part {part!r} contains a reserved character")
        return COMPOSITE_KEY_NAMESPACE + "".join(
            part + COMPOSITE_KEY_NAMESPACE for part in parts
        )

    # =========================================================================
    # RESULT
    # =========================================================================

    @property
    def rwset(self) -> ReadWriteSet:
        """Read/write set of the simulation so far, in key order."""
        return ReadWriteSet(
            namespace=self._namespace,
            reads=[self._reads[k] for k in sorted(self._reads)],
            range_queries=list(self._range_queries),
            writes=[self._writes[k] for k in sorted(self._writes)],
        )

    @staticmethod
    def _encode_key(key: str) -> bytes:
        if not key:
            raise ValueError("key must not be empty")
        return key.encode()
