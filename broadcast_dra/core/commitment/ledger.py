"""
Audit Ledger - append-only hash chain of commitment entries.

    root_i = H(tag, root_{i-1}, entry_i),   root_{-1} = 0^32

A receipt names an index, the entry hash stored there, and the chain root as
of that index. A receipt verifies only if the stored entry still matches and
replaying the chain from genesis reproduces the root, so rewriting any earlier
entry invalidates every later receipt.

One ledger is shared by every audited scheme in a deployment. Appends are
serialized by a single lock so each returned (index, root) pair describes a
consistent prefix of the chain.
"""

import hmac
import threading
from dataclasses import dataclass
from typing import List, Optional

from broadcast_dra.crypto import CryptoParams, get_crypto_params, tagged_hash
from broadcast_dra.utils.logger import get_logger

logger = get_logger("ledger")


# Chain root before the first entry
ZERO_ROOT = bytes(32)


def _is_index(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class AuditReceipt:
    """Proof that an entry was logged at a given position."""
    index: int
    root: bytes
    entry_hash: bytes

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "root": self.root.hex(),
            "entry_hash": self.entry_hash.hex(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuditReceipt":
        if not _is_index(data["index"]):
            raise ValueError(f"Receipt index must be an integer, got {data['index']!r}")
        return cls(
            index=data["index"],
            root=bytes.fromhex(data["root"]),
            entry_hash=bytes.fromhex(data["entry_hash"]),
        )


class AuditLedger:
    """
    Thread-safe append-only log service.

    All reads and writes of the entry list go through one lock.
    """

    def __init__(self, params: Optional[CryptoParams] = None):
        self.params = params or get_crypto_params()
        self._lock = threading.Lock()
        self._entries: List[bytes] = []
        self._root = ZERO_ROOT

    def _chain(self, previous_root: bytes, entry_hash: bytes) -> bytes:
        return tagged_hash(self.params.ledger_chain_tag, previous_root, entry_hash)

    def log_entry(self, entry_hash: bytes) -> AuditReceipt:
        """
        Append an entry and return its receipt.

        Args:
            entry_hash: 32-byte hash of the logged content

        Returns:
            AuditReceipt for the new entry
        """
        if len(entry_hash) != 32:
            raise ValueError("Entry hash must be 32 bytes")

        with self._lock:
            self._entries.append(entry_hash)
            self._root = self._chain(self._root, entry_hash)
            receipt = AuditReceipt(
                index=len(self._entries) - 1,
                root=self._root,
                entry_hash=entry_hash,
            )

        logger.debug(f"Ledger entry {receipt.index} appended, root={receipt.root.hex()[:16]}...")
        return receipt

    def verify(self, receipt: AuditReceipt) -> bool:
        """Check a receipt against the current chain contents."""
        if not _is_index(receipt.index):
            return False
        if not isinstance(receipt.entry_hash, bytes) or not isinstance(receipt.root, bytes):
            return False
        with self._lock:
            if receipt.index < 0 or receipt.index >= len(self._entries):
                return False
            prefix = list(self._entries[: receipt.index + 1])

        if not hmac.compare_digest(prefix[-1], receipt.entry_hash):
            return False

        root = ZERO_ROOT
        for entry in prefix:
            root = self._chain(root, entry)
        return hmac.compare_digest(root, receipt.root)

    @property
    def root(self) -> bytes:
        with self._lock:
            return self._root

    def entries(self) -> List[bytes]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["AuditLedger", "AuditReceipt", "ZERO_ROOT"]
