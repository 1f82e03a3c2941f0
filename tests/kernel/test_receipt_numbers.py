"""Tests for the receipt number generators."""

import pytest

from recon_kernel.domain.receipt_numbers import (
    SequentialReceiptNumberGenerator,
    UUIDReceiptNumberGenerator,
    is_valid_receipt_number,
)


class TestUUIDReceiptNumberGenerator:

    def test_format(self):
        number = UUIDReceiptNumberGenerator().next_number()
        assert number.startswith("REC")
        assert len(number) == 11
        assert is_valid_receipt_number(number)

    def test_custom_prefix(self):
        number = UUIDReceiptNumberGenerator("RCP").next_number()
        assert is_valid_receipt_number(number, prefix="RCP")
        assert not is_valid_receipt_number(number)

    def test_numbers_differ(self):
        gen = UUIDReceiptNumberGenerator()
        numbers = {gen.next_number() for _ in range(200)}
        assert len(numbers) == 200


class TestSequentialReceiptNumberGenerator:

    def test_counts_up(self):
        gen = SequentialReceiptNumberGenerator()
        assert [gen.next_number() for _ in range(3)] == [
            "REC00000001",
            "REC00000002",
            "REC00000003",
        ]
        assert all(is_valid_receipt_number(n) for n in gen.issued)

    def test_replays_explicit_numbers(self):
        gen = SequentialReceiptNumberGenerator(["RECAAAA0001", "RECAAAA0002"])
        assert gen.next_number() == "RECAAAA0001"
        assert gen.next_number() == "RECAAAA0002"
        assert gen.issued == ["RECAAAA0001", "RECAAAA0002"]

    def test_exhausted_sequence_raises(self):
        gen = SequentialReceiptNumberGenerator(["RECAAAA0001"])
        gen.next_number()
        with pytest.raises(RuntimeError):
            gen.next_number()


class TestIsValidReceiptNumber:

    @pytest.mark.parametrize("value", ["REC1A2B3C4D", "REC00000000", "RECABCDEFGH"])
    def test_valid(self, value):
        assert is_valid_receipt_number(value)

    @pytest.mark.parametrize(
        "value",
        ["", "REC", "REC1234567", "REC123456789", "rec1A2B3C4D", "REC1a2b3c4d", "REC1234-678", "XYZ12345678"],
    )
    def test_invalid(self, value):
        assert not is_valid_receipt_number(value)
