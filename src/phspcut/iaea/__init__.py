"""
IAEA phase-space file backend.

Reads and writes ``<base>.IAEAheader`` / ``<base>.IAEAphsp`` pairs and
exposes them as record sources and sinks for the filter engine.
"""

from phspcut.iaea.header import BIG_ENDIAN, LITTLE_ENDIAN, IAEAHeader
from phspcut.iaea.phsp import (
    CHECK_BYTE_ORDER_MISMATCH,
    CHECK_OK,
    CHECK_SIZE_MISMATCH,
    HEADER_SUFFIX,
    PHSP_SUFFIX,
    AccessMode,
    IAEAPhaseSpace,
    decode_columns,
    header_path,
    open_source,
    phsp_path,
)

__all__ = [
    "IAEAHeader",
    "IAEAPhaseSpace",
    "AccessMode",
    "open_source",
    "decode_columns",
    "header_path",
    "phsp_path",
    "HEADER_SUFFIX",
    "PHSP_SUFFIX",
    "CHECK_OK",
    "CHECK_SIZE_MISMATCH",
    "CHECK_BYTE_ORDER_MISMATCH",
    "LITTLE_ENDIAN",
    "BIG_ENDIAN",
]
