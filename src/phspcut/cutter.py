"""
Phase-space cutting: open, check and prepare the IAEA files, run the filter
engine, then report.

Example:
    >>> from phspcut import cut_phase_space, GeometryWindow
    >>>
    >>> report = cut_phase_space("beam", "beam_cut", GeometryWindow(z_plane=100.0))
    >>> report.exit_code, report.result.accepted
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import numpy as np

from phspcut.config import CutterOptions
from phspcut.engine import FilterEngine, RunResult, records_to_read
from phspcut.errors import HeaderCopyError, HeaderFormatError, SourceOpenError
from phspcut.iaea.phsp import (
    CHECK_BYTE_ORDER_MISMATCH,
    CHECK_OK,
    CHECK_SIZE_MISMATCH,
    AccessMode,
    IAEAPhaseSpace,
    decode_columns,
    header_path,
    open_source,
    phsp_path,
)
from phspcut.kernels import evaluate_arrays
from phspcut.predicate import Decision
from phspcut.window import DEFAULT_WINDOW, GeometryWindow

logger = logging.getLogger(__name__)


class CutStatus(Enum):
    COMPLETED = "completed"
    SETUP_FAILED = "setup_failed"


@dataclass(frozen=True)
class CutReport:
    """Outcome of ``cut_phase_space``.

    Attributes:
        status: COMPLETED (also after an error-threshold abort) or SETUP_FAILED
        message: Human readable summary or setup error
        result: Engine result, None if setup failed
        output_size: Size of the output data file in bytes, None if unknown
    """

    status: CutStatus
    message: str
    result: RunResult | None = None
    output_size: int | None = None

    @property
    def exit_code(self) -> int:
        return 0 if self.status is CutStatus.COMPLETED else 1


def remove_output_files(base: str | Path) -> None:
    """Delete ``<base>.IAEAheader`` and ``<base>.IAEAphsp`` if they exist."""
    for path in (header_path(base), phsp_path(base)):
        if path.exists():
            path.unlink()
            logger.debug("[cutter] Removed stale output %s", path)


def _setup_failed(message: str, *streams: IAEAPhaseSpace | None) -> CutReport:
    logger.error("[cutter] %s", message)
    for stream in streams:
        if stream is not None:
            stream.close()
    return CutReport(CutStatus.SETUP_FAILED, message)


def cut_phase_space(
    input_base: str | Path,
    output_base: str | Path,
    window: GeometryWindow = DEFAULT_WINDOW,
    options: CutterOptions | None = None,
) -> CutReport:
    """Write the records of ``input_base`` that pass ``window`` to ``output_base``.

    Setup failures (input cannot be opened, fatal size/byte-order mismatch,
    output cannot be created, header cannot be copied) stop before any record
    is read. The output never stores extension payloads.

    :param input_base: Input file base name (no extension)
    :param output_base: Output file base name (no extension)
    :param window: Geometry window
    :param options: Run options, defaults to CutterOptions()
    :return: CutReport
    """
    options = options or CutterOptions()
    remove_output_files(output_base)

    try:
        src = open_source(input_base, AccessMode.READ)
    except SourceOpenError as e:
        return _setup_failed(f"Error opening input source {input_base}: {e}")

    check = src.check_size_and_byte_order()
    if check == CHECK_SIZE_MISMATCH and options.tolerate_size_mismatch:
        logger.warning(
            "[cutter] Input file size does not match its header (code %d), continuing", check
        )
    elif check != CHECK_OK:
        return _setup_failed(
            f"Input file size or byte order mismatch (code {check})", src
        )

    try:
        dest = open_source(output_base, AccessMode.WRITE)
    except SourceOpenError as e:
        return _setup_failed(f"Error creating output source {output_base}: {e}", src)

    try:
        dest.copy_header_from(src)
    except HeaderCopyError as e:
        return _setup_failed(f"Error copying header from input source: {e}", src, dest)
    dest.set_extra_numbers(0, 0)

    try:
        logger.info("[cutter] Processing input file %s", input_base)
        expected = records_to_read(src.expected_record_count())
        logger.info("[cutter] Expected records (from header): %d", expected)

        engine = FilterEngine(
            window,
            error_threshold=options.error_threshold,
            progress_interval=options.progress_interval,
        )
        result = engine.run(src, dest, expected)
    finally:
        src.close()
        dest.close()

    output_size = _output_size(output_base)
    message = (
        f"Processed {result.processed} records, accepted {result.accepted}"
        + (" (aborted on read errors)" if result.aborted else "")
        + (f"; header update failed: {result.header_error}" if result.header_error else "")
    )
    logger.info("[cutter] Filtering complete. %s", message)
    return CutReport(CutStatus.COMPLETED, message, result, output_size)


def _output_size(output_base: str | Path) -> int | None:
    path = phsp_path(output_base)
    try:
        size = path.stat().st_size
    except OSError:
        logger.warning("[cutter] Cannot read output file size: %s", path)
        return None
    logger.info("[cutter] Output PHSP file size: %d bytes", size)
    return size


def preview_window(
    input_base: str | Path,
    window: GeometryWindow = DEFAULT_WINDOW,
) -> dict[Decision, int]:
    """Count window decisions over an input phase space without writing output.

    Covers the same records a cut reads (the header count minus the
    trailing record), decided in one batch by the Numba kernel.

    :param input_base: Input file base name
    :param window: Geometry window
    :return: {Decision: count}
    :raises SourceOpenError: If the input cannot be opened
    :raises HeaderFormatError: If the input byte order is unknown
    """
    with open_source(input_base, AccessMode.READ) as src:
        if src.check_size_and_byte_order() == CHECK_BYTE_ORDER_MISMATCH:
            raise HeaderFormatError(f"unknown byte order {src.header.byte_order} in {input_base}")
        rows = src.read_arrays(records_to_read(src.expected_record_count()))
        columns = decode_columns(rows, src.header)

    codes = evaluate_arrays(
        columns["x"], columns["y"], columns["z"], columns["u"], columns["v"], columns["w"], window
    )
    counts = np.bincount(codes, minlength=len(Decision))
    result = {decision: int(counts[decision]) for decision in Decision}
    logger.info(
        "[cutter] Preview of %s: %d accepted of %d", input_base, result[Decision.ACCEPT], len(codes)
    )
    return result
