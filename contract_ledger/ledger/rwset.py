"""Read/write sets produced by simulating a transaction proposal."""

import json
from dataclasses import dataclass, field

from ..core.security import hash_content


@dataclass(frozen=True, order=True)
class Version:
    """Height of the transaction that last wrote a key."""

    block_num: int
    tx_num: int


@dataclass(frozen=True)
class KVRead:
    key: bytes
    version: Version | None  # None: the key did not exist


@dataclass(frozen=True)
class KVWrite:
    key: bytes
    value: bytes | None  # None: delete

    @property
    def is_delete(self) -> bool:
        return self.value is None


@dataclass
class RangeQueryInfo:
    """A range scan performed during simulation, kept for phantom detection."""

    start_key: bytes
    end_key: bytes
    itr_exhausted: bool = False
    reads: list[KVRead] = field(default_factory=list)


@dataclass
class ReadWriteSet:
    """Everything a simulation read from and wrote to one namespace."""

    namespace: str
    reads: list[KVRead] = field(default_factory=list)
    range_queries: list[RangeQueryInfo] = field(default_factory=list)
    writes: list[KVWrite] = field(default_factory=list)

    def to_dict(self) -> dict:
        def version(v: Version | None) -> list[int] | None:
            return [v.block_num, v.tx_num] if v else None

        return {
            "namespace": self.namespace,
            "reads": [[r.key.hex(), version(r.version)] for r in self.reads],
            "range_queries": [
                {
                    "start": q.start_key.hex(),
                    "end": q.end_key.hex(),
                    "exhausted": q.itr_exhausted,
                    "reads": [[r.key.hex(), version(r.version)] for r in q.reads],
                }
                for q in self.range_queries
            ],
            "writes": [
                [w.key.hex(), w.value.hex() if w.value is not None else None]
                for w in self.writes
            ],
        }

    def digest(self) -> str:
        """Hash used to check that endorsing peers simulated identically."""
        return hash_content(json.dumps(self.to_dict(), sort_keys=True))
