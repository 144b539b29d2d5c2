"""SQLAlchemy ORM Models for the ledger world state and transaction log.

The world state holds the latest committed value of every key, per channel
and chaincode namespace. Each entry carries the height (block number,
transaction number) of the transaction that last wrote it; that height is the
version checked during commit validation.
"""

from enum import IntEnum

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, RecordedAtMixin


# =============================================================================
# ENUMS
# =============================================================================


class ValidationCode(IntEnum):
    """Commit-time validation result of a transaction."""

    VALID = 0
    DUPLICATE_TXID = 2
    ENDORSEMENT_POLICY_FAILURE = 10
    MVCC_READ_CONFLICT = 11
    PHANTOM_READ_CONFLICT = 12


# =============================================================================
# WORLD STATE
# =============================================================================


class WorldStateEntry(Base):
    """Latest committed value of a ledger key."""

    __tablename__ = "world_state"

    channel: Mapped[str] = mapped_column(String(255), primary_key=True)
    namespace: Mapped[str] = mapped_column(String(255), primary_key=True)
    # Keys are stored as bytes so range scans follow byte order on every backend
    key: Mapped[bytes] = mapped_column(primary_key=True)
    value: Mapped[bytes] = mapped_column(nullable=False)
    block_num: Mapped[int] = mapped_column(Integer, nullable=False)
    tx_num: Mapped[int] = mapped_column(Integer, nullable=False)


# =============================================================================
# TRANSACTION LOG
# =============================================================================


class TransactionRecord(Base, RecordedAtMixin):
    """Every ordered transaction and its validation outcome."""

    __tablename__ = "transactions"

    tx_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    channel: Mapped[str] = mapped_column(String(255), nullable=False)
    namespace: Mapped[str] = mapped_column(String(255), nullable=False)
    function: Mapped[str] = mapped_column(String(255), nullable=False)
    creator_msp_id: Mapped[str] = mapped_column(String(255), nullable=False)
    validation_code: Mapped[int] = mapped_column(Integer, nullable=False)
    block_num: Mapped[int] = mapped_column(Integer, nullable=False)
    tx_num: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("ix_transactions_channel_block", "channel", "block_num"),
    )

    @property
    def code(self) -> ValidationCode:
        return ValidationCode(self.validation_code)
