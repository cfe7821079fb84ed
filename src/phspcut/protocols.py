"""
Protocol definitions for phase-space record streams.

The filter engine only talks to storage through these interfaces, so any
backend (IAEA files, in-memory lists) can feed it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from phspcut.records import ParticleRecord


@runtime_checkable
class RecordSource(Protocol):
    """
    Protocol for readable record streams.

    A source is a finite, non-restartable sequence of records read in order.
    """

    def read_record(self) -> ParticleRecord:
        """
        Read the next record.

        :returns: Next record, or ``ParticleRecord.failure()`` when the read
            fails (end of data, truncation, closed stream)
        """
        ...

    def expected_record_count(self) -> int:
        """Number of records the stream header declares."""
        ...


@runtime_checkable
class RecordSink(Protocol):
    """
    Protocol for writable record streams.

    Records are stored in the order submitted; header statistics are
    committed once, after the last write.
    """

    def write_record(self, record: ParticleRecord) -> None:
        """Append one record."""
        ...

    def set_original_histories(self, count: int) -> None:
        """Set the original history count to store in the header."""
        ...

    def update_header(self) -> None:
        """
        Commit header metadata.

        :raises HeaderUpdateError: If the stream rejects the update
        """
        ...
