"""Hashing utilities for transaction ids and read/write set digests."""

import hashlib
import secrets


def hash_content(content: str) -> str:
    """Create SHA-256 hash of content for integrity verification."""
    return hashlib.sha256(content.encode()).hexdigest()


def new_nonce() -> str:
    """Random nonce for a transaction proposal."""
    return secrets.token_hex(24)


def compute_transaction_id(nonce: str, creator: str) -> str:
    """Transaction id derived from the proposal nonce and its creator."""
    return hash_content(f"{nonce}{creator}")
