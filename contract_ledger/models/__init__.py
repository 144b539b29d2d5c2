"""SQLAlchemy models for the ledger world state."""

from .base import Base, RecordedAtMixin, metadata
from .models import TransactionRecord, ValidationCode, WorldStateEntry

__all__ = [
    # Base
    "Base",
    "RecordedAtMixin",
    "metadata",
    # Enums
    "ValidationCode",
    # Models
    "WorldStateEntry",
    "TransactionRecord",
]
