"""
ReceiptNumberGenerator -- Injectable receipt identifier capability.

Responsibility:
    Mints receipt numbers of the form ``REC`` + 8 uppercase alphanumeric
    characters.  Repair code receives a generator by constructor injection
    and never builds identifiers itself.

Architecture position:
    Kernel > Domain -- pure, except UUIDReceiptNumberGenerator, which reads
    randomness from uuid4.

Failure modes:
    - Uniqueness is NOT guaranteed here.  A storage-layer unique violation
      on insert is retryable; the repair executor asks for a fresh number.
    - SequentialReceiptNumberGenerator raises RuntimeError when its
      explicit sequence is exhausted.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Iterator
from uuid import uuid4

RECEIPT_NUMBER_PREFIX = "REC"
RECEIPT_SUFFIX_LENGTH = 8


class ReceiptNumberGenerator(ABC):
    """Abstract receipt number generator."""

    @abstractmethod
    def next_number(self) -> str:
        """Return a new receipt number."""
        ...


class UUIDReceiptNumberGenerator(ReceiptNumberGenerator):
    """
    Production generator: prefix plus the last 8 hex characters of a uuid4,
    uppercased.
    """

    def __init__(self, prefix: str = RECEIPT_NUMBER_PREFIX):
        self._prefix = prefix

    def next_number(self) -> str:
        return f"{self._prefix}{uuid4().hex[-RECEIPT_SUFFIX_LENGTH:].upper()}"


class SequentialReceiptNumberGenerator(ReceiptNumberGenerator):
    """
    Deterministic generator for tests.

    With no explicit numbers it counts up: REC00000001, REC00000002, ...
    With explicit numbers it replays them in order, then raises.
    """

    def __init__(
        self,
        numbers: Iterable[str] | None = None,
        prefix: str = RECEIPT_NUMBER_PREFIX,
    ):
        self._prefix = prefix
        self._explicit: Iterator[str] | None = (
            iter(numbers) if numbers is not None else None
        )
        self._counter = 0
        self.issued: list[str] = []

    def next_number(self) -> str:
        if self._explicit is not None:
            try:
                number = next(self._explicit)
            except StopIteration:
                raise RuntimeError("SequentialReceiptNumberGenerator exhausted") from None
        else:
            self._counter += 1
            number = f"{self._prefix}{self._counter:0{RECEIPT_SUFFIX_LENGTH}d}"
        self.issued.append(number)
        return number


def is_valid_receipt_number(
    value: str,
    prefix: str = RECEIPT_NUMBER_PREFIX,
) -> bool:
    """True if ``value`` is prefix + 8 uppercase alphanumeric characters."""
    if not value.startswith(prefix):
        return False
    suffix = value[len(prefix):]
    return (
        len(suffix) == RECEIPT_SUFFIX_LENGTH
        and suffix.isalnum()
        and suffix.isascii()
        and suffix == suffix.upper()
    )
