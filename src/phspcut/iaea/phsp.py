"""
IAEA phase-space files: a header (``<base>.IAEAheader``) plus packed binary
records (``<base>.IAEAphsp``).

Record layout (all floats 32-bit, byte order from the header):
    - particle type, int8; negative when w < 0
    - energy; negative for the first particle of a new history
    - stored fields among x, y, z, u, v, weight
    - extension floats and 32-bit integers

w is not written: it is rebuilt as sqrt(1 - u^2 - v^2) with the sign taken
from the particle type, or read from $RECORD_CONSTANT when not stored.

Example:
    >>> src = open_source("beam", AccessMode.READ)
    >>> dst = open_source("beam_cut", AccessMode.WRITE)
    >>> dst.copy_header_from(src)
    >>> dst.set_extra_numbers(0, 0)
    >>> record = src.read_record()
    >>> dst.write_record(record)
    >>> dst.set_original_histories(1)
    >>> dst.update_header()
"""

from __future__ import annotations

import logging
from enum import IntEnum
from pathlib import Path

import numpy as np

from phspcut.errors import HeaderCopyError, HeaderFormatError, HeaderUpdateError, SourceOpenError
from phspcut.iaea.header import BYTE_ORDERS, IAEAHeader
from phspcut.records import ParticleRecord

logger = logging.getLogger(__name__)

HEADER_SUFFIX = ".IAEAheader"
PHSP_SUFFIX = ".IAEAphsp"

# Results of check_size_and_byte_order
CHECK_OK = 0
CHECK_SIZE_MISMATCH = -1
CHECK_BYTE_ORDER_MISMATCH = -2

# Records decoded per buffered read / encoded per buffered write
CHUNK_RECORDS = 65536

_ONE = np.float32(1.0)
_ZERO = np.float32(0.0)


class AccessMode(IntEnum):
    """Access modes for phase-space files."""

    READ = 1
    WRITE = 2


def header_path(base: str | Path) -> Path:
    return Path(f"{base}{HEADER_SUFFIX}")


def phsp_path(base: str | Path) -> Path:
    return Path(f"{base}{PHSP_SUFFIX}")


def decode_columns(rows: np.ndarray, header: IAEAHeader) -> dict[str, np.ndarray]:
    """Decode structured records into float32 columns.

    :param rows: Structured array with ``header.record_dtype()``
    :param header: Header describing the records
    :return: Dict with type, energy, new_history, x, y, z, u, v, w, weight
    """
    n = len(rows)
    ptype = rows["type"].astype(np.int16)
    energy = rows["energy"].astype(np.float32)

    def column(name: str) -> np.ndarray:
        if header.stored[name]:
            return rows[name].astype(np.float32)
        return np.full(n, header.constant(name), dtype=np.float32)

    u = column("u")
    v = column("v")
    if header.stored["w"]:
        w = np.sqrt(np.maximum(_ZERO, _ONE - u * u - v * v))
        w = np.where(ptype < 0, -w, w)
    else:
        w = np.full(n, header.constant("w"), dtype=np.float32)

    return {
        "type": np.abs(ptype),
        "energy": np.abs(energy),
        "new_history": np.signbit(energy),
        "x": column("x"),
        "y": column("y"),
        "z": column("z"),
        "u": u,
        "v": v,
        "w": w,
        "weight": column("weight"),
    }


class IAEAPhaseSpace:
    """One open IAEA phase-space file, readable or writable.

    A READ stream implements ``RecordSource``, a WRITE stream implements
    ``RecordSink``. Use ``open_source`` (or ``IAEAPhaseSpace.open``) to
    create instances.
    """

    def __init__(self, base: str | Path, mode: AccessMode, header: IAEAHeader, fh):
        self.base = str(base)
        self.mode = mode
        self.header = header
        self._fh = fh
        self._dtype: np.dtype | None = None

        # Read buffer
        self._rows: np.ndarray | None = None
        self._row_index = 0

        # Write buffer and statistics
        self._pending: list[tuple] = []
        self._written = 0
        self._new_histories = 0
        self._type_counts: dict[int, int] = {}
        self._mins = [np.inf, np.inf, np.inf]
        self._maxs = [-np.inf, -np.inf, -np.inf]

    @classmethod
    def open(cls, base: str | Path, mode: AccessMode = AccessMode.READ) -> IAEAPhaseSpace:
        """Open ``<base>.IAEAheader`` / ``<base>.IAEAphsp``.

        READ parses the existing header and opens the data file.
        WRITE creates an empty data file; the header is written later by
        ``update_header``.

        :param base: File base name without extension
        :param mode: AccessMode.READ or AccessMode.WRITE
        :returns: IAEAPhaseSpace instance
        :raises SourceOpenError: If the files cannot be opened or created
        """
        mode = AccessMode(mode)
        try:
            if mode is AccessMode.READ:
                header = IAEAHeader.read(header_path(base))
                fh = open(phsp_path(base), "rb")
            else:
                header = IAEAHeader()
                fh = open(phsp_path(base), "wb")
        except (OSError, HeaderFormatError) as e:
            raise SourceOpenError(f"cannot open phase space {base!r}: {e}") from e

        logger.debug("[IAEAPhaseSpace] Opened %s (%s)", base, mode.name)
        return cls(base, mode, header, fh)

    # ========================================================================
    # Header operations
    # ========================================================================

    def check_size_and_byte_order(self) -> int:
        """Check the data file against the header.

        :return: CHECK_OK, CHECK_BYTE_ORDER_MISMATCH if the byte order code
            is unknown, CHECK_SIZE_MISMATCH if the data file size differs
            from the header checksum or from particles * record length
        """
        if self.header.byte_order not in BYTE_ORDERS:
            return CHECK_BYTE_ORDER_MISMATCH
        size = phsp_path(self.base).stat().st_size
        expected = self.header.particles * self.header.record_length
        if size != self.header.checksum or size != expected:
            logger.debug(
                "[IAEAPhaseSpace] %s: size %d, checksum %d, expected %d",
                self.base,
                size,
                self.header.checksum,
                expected,
            )
            return CHECK_SIZE_MISMATCH
        return CHECK_OK

    def copy_header_from(self, source: IAEAPhaseSpace) -> None:
        """Copy header metadata from another phase space into this output.

        :raises HeaderCopyError: If this stream is not writable or already has records
        """
        if self.mode is not AccessMode.WRITE:
            raise HeaderCopyError(f"{self.base!r} is not opened for writing")
        if self._written:
            raise HeaderCopyError(f"{self.base!r} already holds records")
        self.header = source.header.copy()
        self.header.reset_statistics()
        self._dtype = None

    def set_extra_numbers(self, n_floats: int, n_ints: int) -> None:
        """Set how many extension floats/ints each output record stores.

        (0, 0) drops the extension payload of every record written.
        """
        if self.mode is not AccessMode.WRITE:
            raise ValueError(f"{self.base!r} is not opened for writing")
        self.header.set_extra_numbers(n_floats, n_ints)
        self._dtype = None

    def expected_record_count(self) -> int:
        """Number of records declared by the header."""
        return self.header.particles

    def set_original_histories(self, count: int) -> None:
        self.header.original_histories = int(count)

    def update_header(self) -> None:
        """Flush records and write the header with the current statistics.

        :raises HeaderUpdateError: If the stream is not writable or the write fails
        """
        if self.mode is not AccessMode.WRITE or self._fh is None:
            raise HeaderUpdateError(f"{self.base!r} is not an open output phase space")
        header = self.header
        try:
            self._flush()
            header.particles = self._written
            header.checksum = self._written * header.record_length
            header.type_counts = dict(self._type_counts)
            header.extents = (
                tuple(zip(self._mins, self._maxs)) if self._written else None
            )
            header.write(header_path(self.base))
        except (OSError, HeaderFormatError) as e:
            raise HeaderUpdateError(f"cannot update header of {self.base!r}: {e}") from e

    # ========================================================================
    # Records
    # ========================================================================

    @property
    def dtype(self) -> np.dtype:
        if self._dtype is None:
            self._dtype = self.header.record_dtype()
        return self._dtype

    def _fill(self) -> bool:
        """Decode the next chunk of records; False when nothing is left."""
        try:
            dtype = self.dtype
        except HeaderFormatError as e:
            logger.debug("[IAEAPhaseSpace] Cannot decode %s: %s", self.base, e)
            return False
        data = self._fh.read(CHUNK_RECORDS * dtype.itemsize)
        n = len(data) // dtype.itemsize
        if n == 0:
            return False
        self._rows = np.frombuffer(data, dtype=dtype, count=n)
        self._row_index = 0
        return True

    def read_record(self) -> ParticleRecord:
        """Read the next record.

        :return: Decoded record, or the failure sentinel at end of data,
            on a truncated record or after ``close()``
        """
        if self.mode is not AccessMode.READ:
            raise ValueError(f"{self.base!r} is not opened for reading")
        if self._fh is None:
            return ParticleRecord.failure()
        if self._rows is None or self._row_index >= len(self._rows):
            if not self._fill():
                return ParticleRecord.failure()
        row = self._rows[self._row_index]
        self._row_index += 1
        return self._decode(row)

    def _decode(self, row) -> ParticleRecord:
        header = self.header

        def value(name: str) -> np.float32:
            if header.stored[name]:
                return np.float32(row[name])
            return np.float32(header.constant(name))

        ptype = int(row["type"])
        energy = np.float32(row["energy"])
        u = value("u")
        v = value("v")
        if header.stored["w"]:
            w = np.sqrt(max(_ZERO, _ONE - u * u - v * v))
            if ptype < 0:
                w = -w
        else:
            w = np.float32(header.constant("w"))

        return ParticleRecord(
            status=1 if np.signbit(energy) else 0,
            particle_type=abs(ptype),
            energy=abs(energy),
            weight=value("weight"),
            x=value("x"),
            y=value("y"),
            z=value("z"),
            u=u,
            v=v,
            w=w,
            extra_floats=tuple(row["extra_floats"].tolist()) if header.extra_floats else (),
            extra_ints=tuple(row["extra_longs"].tolist()) if header.extra_longs else (),
        )

    def read_arrays(self, count: int | None = None) -> np.ndarray:
        """Read records as a structured array, independent of ``read_record``.

        :param count: Maximum number of records, None for the whole file
        :return: Structured array with ``self.dtype``
        """
        dtype = self.dtype
        available = phsp_path(self.base).stat().st_size // dtype.itemsize
        n = available if count is None else max(0, min(count, available))
        return np.fromfile(phsp_path(self.base), dtype=dtype, count=n)

    def write_record(self, record: ParticleRecord) -> None:
        """Append one record to the output buffer.

        Fields that the header marks as constant are not written; the
        extension payload is truncated or zero-padded to the header counts.
        """
        if self.mode is not AccessMode.WRITE or self._fh is None:
            raise ValueError(f"{self.base!r} is not an open output phase space")
        header = self.header

        ptype = int(record.particle_type)
        if record.w < 0:
            ptype = -ptype
        energy = abs(float(record.energy))
        # A zero energy is stored as -0.0; readers test the sign bit
        if record.status > 0:
            energy = -energy
            self._new_histories += 1

        row = [ptype, energy]
        for name in ("x", "y", "z", "u", "v", "weight"):
            if header.stored[name]:
                row.append(getattr(record, name))
        if header.extra_floats:
            row.append(_fit(record.extra_floats, header.extra_floats, 0.0))
        if header.extra_longs:
            row.append(_fit(record.extra_ints, header.extra_longs, 0))
        self._pending.append(tuple(row))

        self._written += 1
        self._type_counts[abs(ptype)] = self._type_counts.get(abs(ptype), 0) + 1
        for axis, coord in enumerate((record.x, record.y, record.z)):
            coord = float(coord)
            if coord < self._mins[axis]:
                self._mins[axis] = coord
            if coord > self._maxs[axis]:
                self._maxs[axis] = coord

        if len(self._pending) >= CHUNK_RECORDS:
            self._flush()

    def _flush(self) -> None:
        if not self._pending:
            return
        rows = np.array(self._pending, dtype=self.dtype)
        self._fh.write(rows.tobytes())
        self._fh.flush()
        self._pending = []

    # ========================================================================
    # Lifecycle
    # ========================================================================

    @property
    def closed(self) -> bool:
        return self._fh is None

    def close(self) -> None:
        """Flush pending records and close the data file."""
        if self._fh is None:
            return
        try:
            if self.mode is AccessMode.WRITE:
                self._flush()
        finally:
            self._fh.close()
            self._fh = None
            self._rows = None
        logger.debug("[IAEAPhaseSpace] Closed %s", self.base)

    def __enter__(self) -> IAEAPhaseSpace:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"IAEAPhaseSpace({self.base!r}, {self.mode.name}, particles={self.header.particles})"


def _fit(values: tuple, n: int, fill) -> tuple:
    values = tuple(values)[:n]
    return values + (fill,) * (n - len(values))


def open_source(base: str | Path, mode: AccessMode = AccessMode.READ) -> IAEAPhaseSpace:
    """Open an IAEA phase space for reading or writing (see IAEAPhaseSpace.open)."""
    return IAEAPhaseSpace.open(base, mode)
