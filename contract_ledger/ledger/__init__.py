"""Local ledger network: world state, endorsing peers, ordering and gateway."""

from .committer import CommitStatus, Committer, Envelope, OrderingService
from .errors import (
    CommitError,
    CommitStatusError,
    EndorseError,
    ErrorDetail,
    GatewayError,
    StatusCode,
    SubmitError,
    TransactionError,
)
from .gateway import Contract, Gateway, Network, Proposal, connect
from .peer import Peer, ProposalResponse, TransactionProposal
from .rwset import KVRead, KVWrite, RangeQueryInfo, ReadWriteSet, Version
from .store import VersionedValue, WorldStateStore
from .stub import KV, ChaincodeStub, StateQueryIterator

__all__ = [
    # World state
    "WorldStateStore",
    "VersionedValue",
    "Version",
    "KVRead",
    "KVWrite",
    "RangeQueryInfo",
    "ReadWriteSet",
    # Simulation
    "ChaincodeStub",
    "StateQueryIterator",
    "KV",
    "Peer",
    "TransactionProposal",
    "ProposalResponse",
    # Ordering
    "Committer",
    "OrderingService",
    "Envelope",
    "CommitStatus",
    # Gateway
    "connect",
    "Gateway",
    "Network",
    "Contract",
    "Proposal",
    # Errors
    "GatewayError",
    "TransactionError",
    "EndorseError",
    "SubmitError",
    "CommitStatusError",
    "CommitError",
    "ErrorDetail",
    "StatusCode",
]
