"""
Streaming filter engine.

Drives the read -> decide -> write loop over a record source, strictly in
input order, and reconciles the accepted-record count into the sink header.

Example:
    >>> from phspcut import FilterEngine, GeometryWindow
    >>>
    >>> engine = FilterEngine(GeometryWindow(z_plane=100.0), error_threshold=10)
    >>> result = engine.run(source, sink, records_to_read(source.expected_record_count()))
    >>> print(result.accepted, result.aborted)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from phspcut.config import ERROR_THRESHOLD, PROGRESS_INTERVAL
from phspcut.errors import HeaderUpdateError
from phspcut.predicate import Decision, evaluate
from phspcut.protocols import RecordSink, RecordSource
from phspcut.window import GeometryWindow

logger = logging.getLogger(__name__)


def records_to_read(count: int) -> int:
    """Number of read attempts for a header declaring ``count`` records.

    The header count includes one trailing record that is never read.
    """
    return count - 1 if count > 0 else count


@dataclass
class FilterRunStats:
    """Running counters of one filter run."""

    processed: int = 0
    accepted: int = 0
    errors: int = 0
    rejected_backward: int = 0
    rejected_outside: int = 0

    def record(self, decision: Decision) -> None:
        """Count one successfully read record."""
        if decision is Decision.ACCEPT:
            self.accepted += 1
        elif decision is Decision.REJECT_BACKWARD:
            self.rejected_backward += 1
        else:
            self.rejected_outside += 1
        self.processed += 1


@dataclass(frozen=True)
class RunResult:
    """Outcome of one filter run.

    Attributes:
        processed: Records read successfully and decided
        accepted: Records written to the sink
        errors: Read failures seen (cumulative)
        aborted: True if the run stopped early on the error threshold
        rejected_backward: Records rejected for ``w <= 0``
        rejected_outside: Records rejected for missing the window
        header_error: Message if the sink rejected the header update, else None
    """

    processed: int
    accepted: int
    errors: int
    aborted: bool
    rejected_backward: int = 0
    rejected_outside: int = 0
    header_error: str | None = None

    @property
    def rejected(self) -> int:
        return self.rejected_backward + self.rejected_outside

    @property
    def ok(self) -> bool:
        """True if the header update succeeded."""
        return self.header_error is None


class FilterEngine:
    """Sequential window filter over one (source, sink) pair per run.

    The window is fixed at construction; an engine holds no state between
    runs, so several engines with different windows can coexist.
    """

    def __init__(
        self,
        window: GeometryWindow,
        error_threshold: int = ERROR_THRESHOLD,
        progress_interval: int = PROGRESS_INTERVAL,
    ):
        if error_threshold < 0:
            raise ValueError("error_threshold must be non-negative")
        if progress_interval <= 0:
            raise ValueError("progress_interval must be positive")
        self.window = window
        self.error_threshold = error_threshold
        self.progress_interval = progress_interval

    def run(self, source: RecordSource, sink: RecordSink, expected_records: int) -> RunResult:
        """Filter up to ``expected_records`` records from source into sink.

        Read failures are skipped and counted; once the cumulative count
        exceeds the error threshold the loop stops. The sink header is
        finalized in every case.

        :param source: Record source positioned at the first record
        :param sink: Record sink, header already prepared
        :param expected_records: Number of read attempts
        :return: RunResult with counters, abort flag and header status
        """
        stats = FilterRunStats()
        aborted = False
        window = self.window

        logger.info("[FilterEngine] Reading %d records", expected_records)

        for index in range(expected_records):
            record = source.read_record()
            if record.is_failure:
                stats.errors += 1
                logger.warning(
                    "[FilterEngine] Error reading record %d (error count: %d)", index, stats.errors
                )
                if stats.errors > self.error_threshold:
                    logger.error("[FilterEngine] Too many read errors, aborting filtering")
                    aborted = True
                    break
                continue

            decision = evaluate(record, window)
            if decision is Decision.ACCEPT:
                sink.write_record(record)
            stats.record(decision)

            if stats.processed % self.progress_interval == 0:
                logger.info("[FilterEngine] Processed %d records", stats.processed)

        logger.info(
            "[FilterEngine] Processed %d records, accepted %d, read errors %d",
            stats.processed,
            stats.accepted,
            stats.errors,
        )

        header_error = self.finalize(sink, stats.accepted)

        return RunResult(
            processed=stats.processed,
            accepted=stats.accepted,
            errors=stats.errors,
            aborted=aborted,
            rejected_backward=stats.rejected_backward,
            rejected_outside=stats.rejected_outside,
            header_error=header_error,
        )

    @staticmethod
    def finalize(sink: RecordSink, accepted: int) -> str | None:
        """Write the accepted count into the sink header.

        Sets the value rather than adding to it, so repeating the call with
        the same count leaves the header unchanged.

        :param sink: Record sink
        :param accepted: Accepted record count, stored as original histories
        :return: None on success, error message if the sink rejected the update
        """
        sink.set_original_histories(accepted)
        try:
            sink.update_header()
        except HeaderUpdateError as e:
            logger.error("[FilterEngine] Error updating output header: %s", e)
            return str(e)
        logger.info("[FilterEngine] Output header updated (%d original histories)", accepted)
        return None


def run_filter(
    source: RecordSource,
    sink: RecordSink,
    window: GeometryWindow,
    expected_records: int,
    error_threshold: int = ERROR_THRESHOLD,
) -> RunResult:
    """Run one filter pass with a throwaway engine.

    :param source: Record source
    :param sink: Record sink
    :param window: Geometry window
    :param expected_records: Number of read attempts
    :param error_threshold: Cumulative read failures tolerated
    :return: RunResult
    """
    return FilterEngine(window, error_threshold=error_threshold).run(source, sink, expected_records)
