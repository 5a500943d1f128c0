"""
Unit tests for the audit ledger.

Tests cover:
1. Chain construction and receipts
2. Receipt verification and tamper detection
3. Concurrent appends from multiple threads
"""

import threading
from dataclasses import replace

import pytest

from broadcast_dra.crypto import get_crypto_params, sha256, tagged_hash
from broadcast_dra.core.commitment import AuditLedger, AuditReceipt, ZERO_ROOT


def entry(i: int) -> bytes:
    return sha256(i.to_bytes(4, "big"))


@pytest.fixture
def ledger():
    return AuditLedger()


@pytest.fixture
def filled_ledger():
    ledger = AuditLedger()
    receipts = [ledger.log_entry(entry(i)) for i in range(5)]
    return ledger, receipts


# =============================================================================
# Chain Tests
# =============================================================================


class TestChain:
    """Tests for the hash chain."""

    def test_empty_root(self, ledger):
        assert ledger.root == ZERO_ROOT
        assert len(ledger) == 0

    def test_first_receipt(self, ledger):
        receipt = ledger.log_entry(entry(0))
        chain_tag = get_crypto_params().ledger_chain_tag
        assert receipt.index == 0
        assert receipt.entry_hash == entry(0)
        assert receipt.root == tagged_hash(chain_tag, ZERO_ROOT, entry(0))

    def test_root_chains(self, filled_ledger):
        ledger, receipts = filled_ledger
        chain_tag = get_crypto_params().ledger_chain_tag
        root = ZERO_ROOT
        for i, receipt in enumerate(receipts):
            root = tagged_hash(chain_tag, root, entry(i))
            assert receipt.root == root
        assert ledger.root == root

    def test_indices_sequential(self, filled_ledger):
        _, receipts = filled_ledger
        assert [r.index for r in receipts] == [0, 1, 2, 3, 4]

    def test_entries_copy(self, filled_ledger):
        ledger, _ = filled_ledger
        entries = ledger.entries()
        entries.clear()
        assert len(ledger) == 5

    def test_rejects_wrong_length(self, ledger):
        with pytest.raises(ValueError):
            ledger.log_entry(b"short")


# =============================================================================
# Verification Tests
# =============================================================================


class TestVerification:
    """Tests for receipt verification."""

    def test_all_receipts_verify(self, filled_ledger):
        ledger, receipts = filled_ledger
        assert all(ledger.verify(r) for r in receipts)

    def test_old_receipt_valid_after_appends(self, ledger):
        first = ledger.log_entry(entry(0))
        for i in range(1, 10):
            ledger.log_entry(entry(i))
        assert ledger.verify(first)

    def test_out_of_range_index(self, filled_ledger):
        ledger, receipts = filled_ledger
        assert not ledger.verify(replace(receipts[0], index=5))
        assert not ledger.verify(replace(receipts[0], index=-1))

    def test_wrong_entry_hash(self, filled_ledger):
        ledger, receipts = filled_ledger
        assert not ledger.verify(replace(receipts[2], entry_hash=entry(99)))

    def test_wrong_root(self, filled_ledger):
        ledger, receipts = filled_ledger
        assert not ledger.verify(replace(receipts[2], root=receipts[3].root))

    def test_rewritten_history_detected(self, filled_ledger):
        """Rewriting an earlier entry invalidates every later receipt."""
        ledger, receipts = filled_ledger
        ledger._entries[1] = entry(42)
        assert ledger.verify(receipts[0])
        assert not any(ledger.verify(r) for r in receipts[1:])

    @pytest.mark.parametrize("index", ["0", 1.0, True, None])
    def test_non_integer_index(self, filled_ledger, index):
        ledger, receipts = filled_ledger
        assert ledger.verify(replace(receipts[0], index=index)) is False

    def test_non_bytes_fields(self, filled_ledger):
        ledger, receipts = filled_ledger
        assert ledger.verify(replace(receipts[0], root=receipts[0].root.hex())) is False
        assert ledger.verify(replace(receipts[0], entry_hash=None)) is False

    def test_receipt_serialization(self, filled_ledger):
        ledger, receipts = filled_ledger
        restored = AuditReceipt.from_dict(receipts[3].to_dict())
        assert restored == receipts[3]
        assert ledger.verify(restored)

    @pytest.mark.parametrize("index", ["3", True, 3.0])
    def test_deserialize_rejects_non_integer_index(self, filled_ledger, index):
        _, receipts = filled_ledger
        data = receipts[3].to_dict()
        data["index"] = index
        with pytest.raises(ValueError):
            AuditReceipt.from_dict(data)


# =============================================================================
# Concurrency Tests
# =============================================================================


class TestConcurrency:

    def test_concurrent_appends_consistent(self, ledger):
        """Parallel appends lose nothing and every receipt names a consistent prefix."""
        receipts = []
        errors = []
        lock = threading.Lock()

        def append_25(worker: int):
            try:
                for i in range(25):
                    receipt = ledger.log_entry(entry(worker * 1000 + i))
                    with lock:
                        receipts.append(receipt)
            except Exception as e:
                errors.append(str(e))

        threads = [threading.Thread(target=append_25, args=(w,)) for w in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == [], f"Concurrent appends raised exceptions: {errors}"
        assert len(ledger) == 100
        assert sorted(r.index for r in receipts) == list(range(100))
        assert all(ledger.verify(r) for r in receipts)

        entries = ledger.entries()
        for r in receipts:
            assert entries[r.index] == r.entry_hash
