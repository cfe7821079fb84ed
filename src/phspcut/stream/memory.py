"""
In-memory record streams.

Lightweight source and sink backed by Python lists, for tests and for
embedding the filter engine without files.

Example:
    >>> source = InMemorySource(records)
    >>> sink = InMemorySink()
    >>> FilterEngine(window).run(source, sink, len(records))
    >>> sink.records, sink.original_histories
"""

from __future__ import annotations

from collections.abc import Iterable

from phspcut.errors import HeaderUpdateError
from phspcut.records import ParticleRecord


class InMemorySource:
    """Record source over a list of records.

    Reads past the end or after ``close()`` return the failure sentinel;
    failure records placed in the list are returned as they are.
    """

    def __init__(self, records: Iterable[ParticleRecord], expected: int | None = None):
        self._records = list(records)
        self._expected = len(self._records) if expected is None else expected
        self._position = 0
        self.closed = False
        self.reads = 0

    def read_record(self) -> ParticleRecord:
        self.reads += 1
        if self.closed or self._position >= len(self._records):
            return ParticleRecord.failure()
        record = self._records[self._position]
        self._position += 1
        return record

    def expected_record_count(self) -> int:
        return self._expected

    def close(self) -> None:
        self.closed = True


class InMemorySink:
    """Record sink collecting records in a list.

    :param fail_update: If True, ``update_header`` raises HeaderUpdateError
    """

    def __init__(self, fail_update: bool = False):
        self.records: list[ParticleRecord] = []
        self.original_histories = 0
        self.header: dict[str, int] = {}
        self.header_updates = 0
        self.fail_update = fail_update

    def write_record(self, record: ParticleRecord) -> None:
        self.records.append(record)

    def set_original_histories(self, count: int) -> None:
        self.original_histories = count

    def update_header(self) -> None:
        if self.fail_update:
            raise HeaderUpdateError("in-memory sink rejects header updates")
        self.header_updates += 1
        self.header = {
            "original_histories": self.original_histories,
            "particles": len(self.records),
        }
