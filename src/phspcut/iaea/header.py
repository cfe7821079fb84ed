"""
IAEA phase-space header files (``.IAEAheader``).

The header is a text file of ``$KEY:`` sections, each followed by value lines
that may carry ``//`` comments. Only the sections needed to decode records
and to report statistics are interpreted; every other section is kept as-is
and written back unchanged.

Example:
    >>> header = IAEAHeader.read("beam.IAEAheader")
    >>> header.particles, header.record_length
    (1000000, 33)
    >>> header.record_dtype()
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from phspcut.errors import HeaderFormatError
from phspcut.records import ParticleType

logger = logging.getLogger(__name__)

# Order of the $RECORD_CONTENTS flags and of the $RECORD_CONSTANT values
RECORD_FIELDS = ("x", "y", "z", "u", "v", "w", "weight")

# Byte order codes as written in $BYTE_ORDER
LITTLE_ENDIAN = 1234
BIG_ENDIAN = 4321
BYTE_ORDERS = {LITTLE_ENDIAN: "<", BIG_ENDIAN: ">"}

# Particle type -> section holding its count
TYPE_SECTIONS = {ptype: f"{ptype.name}S" for ptype in ParticleType}

_FIELD_LABELS = {
    "x": "X is stored ?",
    "y": "Y is stored ?",
    "z": "Z is stored ?",
    "u": "U is stored ?",
    "v": "V is stored ?",
    "w": "W is stored ?",
    "weight": "Weight is stored ?",
}

# Sections regenerated from the attributes on write
_MANAGED = {
    "TITLE",
    "FILE_TYPE",
    "CHECKSUM",
    "RECORD_CONTENTS",
    "RECORD_CONSTANT",
    "RECORD_LENGTH",
    "BYTE_ORDER",
    "ORIG_HISTORIES",
    "PARTICLES",
    "STATISTICAL_INFORMATION_GEOMETRY",
    *TYPE_SECTIONS.values(),
}

# Sections describing the extension payload, dropped when it is disabled
_EXTRA_TYPE_SECTIONS = ("EXTRA_FLOATS_TYPES", "EXTRA_LONGS_TYPES")


def _strip_comment(line: str) -> str:
    return line.split("//", 1)[0].strip()


def _split_sections(text: str) -> dict[str, list[str]]:
    """Split header text into {section name: raw value lines}."""
    sections: dict[str, list[str]] = {}
    current = None
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("$") and stripped.endswith(":"):
            current = stripped[1:-1]
            sections[current] = []
        elif current is not None:
            sections[current].append(line.rstrip())
    # Drop trailing blank lines of each section
    for lines in sections.values():
        while lines and not lines[-1].strip():
            lines.pop()
    return sections


def _values(lines: list[str]) -> list[str]:
    """Non-empty value lines with comments removed."""
    return [v for v in (_strip_comment(line) for line in lines) if v]


def _first_int(sections: dict[str, list[str]], name: str, default: int | None = None) -> int:
    values = _values(sections.get(name, []))
    if not values:
        if default is None:
            raise HeaderFormatError(f"missing ${name} section")
        return default
    try:
        return int(values[0].split()[0])
    except ValueError as e:
        raise HeaderFormatError(f"invalid integer in ${name}: {values[0]!r}") from e


@dataclass
class IAEAHeader:
    """
    Parsed IAEA header.

    Attributes:
        title: Free text title
        file_type: 0 = phase space, 1 = event generator
        checksum: Declared data file size in bytes
        stored: Per-field flags of $RECORD_CONTENTS (x, y, z, u, v, w, weight)
        constants: Values of fields that are not stored
        extra_floats: Extension floats per record
        extra_longs: Extension 32-bit integers per record
        byte_order: 1234 (little endian) or 4321 (big endian)
        original_histories: Number of original histories
        particles: Number of records in the data file
        type_counts: Records per particle type
        extents: ((xmin, xmax), (ymin, ymax), (zmin, zmax)) or None
        sections: Uninterpreted sections, written back unchanged
    """

    title: str = ""
    file_type: int = 0
    checksum: int = 0
    stored: dict[str, bool] = field(default_factory=lambda: dict.fromkeys(RECORD_FIELDS, True))
    constants: dict[str, float] = field(default_factory=dict)
    extra_floats: int = 0
    extra_longs: int = 0
    byte_order: int = LITTLE_ENDIAN
    original_histories: int = 0
    particles: int = 0
    type_counts: dict[int, int] = field(default_factory=dict)
    extents: tuple[tuple[float, float], ...] | None = None
    sections: dict[str, list[str]] = field(default_factory=dict)

    # ========================================================================
    # Record layout
    # ========================================================================

    @property
    def record_length(self) -> int:
        """Bytes per record: type, energy, stored floats and extension."""
        # W is never written, it is rebuilt from U and V
        n_floats = sum(self.stored[name] for name in RECORD_FIELDS if name != "w")
        return 1 + 4 + 4 * n_floats + 4 * self.extra_floats + 4 * self.extra_longs

    def record_dtype(self) -> np.dtype:
        """Numpy structured dtype of one packed record.

        :raises HeaderFormatError: If the byte order code is unknown
        """
        if self.byte_order not in BYTE_ORDERS:
            raise HeaderFormatError(f"unknown byte order {self.byte_order}")
        e = BYTE_ORDERS[self.byte_order]
        fields = [("type", "i1"), ("energy", f"{e}f4")]
        for name in ("x", "y", "z", "u", "v", "weight"):
            if self.stored[name]:
                fields.append((name, f"{e}f4"))
        if self.extra_floats:
            fields.append(("extra_floats", f"{e}f4", (self.extra_floats,)))
        if self.extra_longs:
            fields.append(("extra_longs", f"{e}i4", (self.extra_longs,)))
        dtype = np.dtype(fields)
        if dtype.itemsize != self.record_length:
            raise HeaderFormatError(
                f"record dtype has {dtype.itemsize} bytes, expected {self.record_length}"
            )
        return dtype

    def constant(self, name: str) -> float:
        """Value of a field that is not stored per record."""
        if name in self.constants:
            return self.constants[name]
        raise HeaderFormatError(f"no $RECORD_CONSTANT value for unstored field {name!r}")

    def copy(self) -> IAEAHeader:
        return copy.deepcopy(self)

    def reset_statistics(self) -> None:
        """Clear counts that describe the data file contents."""
        self.checksum = 0
        self.particles = 0
        self.type_counts = {}
        self.extents = None

    def set_extra_numbers(self, n_floats: int, n_longs: int) -> None:
        """Set the extension payload size of each record."""
        if n_floats < 0 or n_longs < 0:
            raise ValueError("extra number counts must be non-negative")
        self.extra_floats = n_floats
        self.extra_longs = n_longs
        if n_floats == 0 and n_longs == 0:
            for name in _EXTRA_TYPE_SECTIONS:
                self.sections.pop(name, None)

    # ========================================================================
    # Parsing
    # ========================================================================

    @classmethod
    def parse(cls, text: str) -> IAEAHeader:
        """Parse header text.

        :param text: Contents of a .IAEAheader file
        :returns: IAEAHeader instance
        :raises HeaderFormatError: If required sections are missing or invalid
        """
        sections = _split_sections(text)

        contents = _values(sections.get("RECORD_CONTENTS", []))
        if len(contents) < len(RECORD_FIELDS):
            raise HeaderFormatError("$RECORD_CONTENTS must list 7 stored flags")
        try:
            flags = [int(v.split()[0]) for v in contents]
        except ValueError as e:
            raise HeaderFormatError(f"invalid $RECORD_CONTENTS: {e}") from e
        stored = {name: bool(flag) for name, flag in zip(RECORD_FIELDS, flags)}
        extra_floats = flags[7] if len(flags) > 7 else 0
        extra_longs = flags[8] if len(flags) > 8 else 0

        constant_values = _values(sections.get("RECORD_CONSTANT", []))
        unstored = [name for name in RECORD_FIELDS if not stored[name]]
        if len(constant_values) < len(unstored):
            raise HeaderFormatError(
                f"$RECORD_CONSTANT has {len(constant_values)} values for {len(unstored)} unstored fields"
            )
        try:
            constants = {
                name: float(value.split()[0]) for name, value in zip(unstored, constant_values)
            }
        except ValueError as e:
            raise HeaderFormatError(f"invalid $RECORD_CONSTANT: {e}") from e

        header = cls(
            title="\n".join(line.strip() for line in sections.get("TITLE", [])).strip(),
            file_type=_first_int(sections, "FILE_TYPE", 0),
            checksum=_first_int(sections, "CHECKSUM", 0),
            stored=stored,
            constants=constants,
            extra_floats=extra_floats,
            extra_longs=extra_longs,
            byte_order=_first_int(sections, "BYTE_ORDER", LITTLE_ENDIAN),
            original_histories=_first_int(sections, "ORIG_HISTORIES", 0),
            particles=_first_int(sections, "PARTICLES"),
        )

        for ptype, name in TYPE_SECTIONS.items():
            if name in sections:
                header.type_counts[int(ptype)] = _first_int(sections, name, 0)

        geometry = _values(sections.get("STATISTICAL_INFORMATION_GEOMETRY", []))
        if len(geometry) >= 3:
            try:
                header.extents = tuple(
                    (float(line.split()[0]), float(line.split()[1])) for line in geometry[:3]
                )
            except (ValueError, IndexError):
                logger.warning("[IAEAHeader] Ignoring malformed geometry statistics")

        record_length = _first_int(sections, "RECORD_LENGTH", header.record_length)
        if record_length != header.record_length:
            raise HeaderFormatError(
                f"$RECORD_LENGTH {record_length} does not match record contents "
                f"({header.record_length} bytes)"
            )

        header.sections = {k: v for k, v in sections.items() if k not in _MANAGED}
        return header

    @classmethod
    def read(cls, path: str | Path) -> IAEAHeader:
        """Read and parse a header file.

        :param path: Path to .IAEAheader file
        :returns: IAEAHeader instance
        """
        text = Path(path).read_text(encoding="ascii", errors="replace")
        header = cls.parse(text)
        logger.debug("[IAEAHeader] Read %s: %d particles", path, header.particles)
        return header

    # ========================================================================
    # Formatting
    # ========================================================================

    def format(self) -> str:
        """Render header text."""
        out: list[str] = []

        def section(name: str, *lines: str) -> None:
            out.append(f"${name}:")
            out.extend(lines)
            out.append("")

        section("TITLE", *(self.title.splitlines() or [""]))
        section("FILE_TYPE", f"    {self.file_type}")
        section("CHECKSUM", f"    {self.checksum}")

        contents = [f"    {int(self.stored[name])}     // {_FIELD_LABELS[name]}" for name in RECORD_FIELDS]
        contents.append(f"    {self.extra_floats}     // Extra floats stored ?")
        contents.append(f"    {self.extra_longs}     // Extra longs stored ?")
        section("RECORD_CONTENTS", *contents)

        constants = [
            f"    {float(self.constant(name))!r}     // Constant {name.upper()}"
            for name in RECORD_FIELDS
            if not self.stored[name]
        ]
        section("RECORD_CONSTANT", *constants)
        section("RECORD_LENGTH", f"    {self.record_length}")
        section("BYTE_ORDER", f"    {self.byte_order}")
        section("ORIG_HISTORIES", f"    {self.original_histories}")
        section("PARTICLES", f"    {self.particles}")

        for ptype, name in TYPE_SECTIONS.items():
            count = self.type_counts.get(int(ptype), 0)
            if count:
                section(name, f"    {count}")

        if self.extents is not None:
            section(
                "STATISTICAL_INFORMATION_GEOMETRY",
                *(f"    {lo:.6g}  {hi:.6g}" for lo, hi in self.extents),
            )

        for name, lines in self.sections.items():
            section(name, *lines)

        return "\n".join(out)

    def write(self, path: str | Path) -> None:
        """Write header text to a file."""
        Path(path).write_text(self.format(), encoding="ascii")
        logger.debug("[IAEAHeader] Wrote %s: %d particles", path, self.particles)
