"""
Particle records of an IAEA phase-space stream.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

# Status code returned by a source when a record could not be read
READ_FAILURE = -1


class ParticleType(IntEnum):
    """IAEA particle type codes."""

    PHOTON = 1
    ELECTRON = 2
    POSITRON = 3
    NEUTRON = 4
    PROTON = 5


@dataclass(frozen=True)
class ParticleRecord:
    """One particle crossing event.

    Attributes:
        status: 0 = same history as previous record, >0 = new history,
            READ_FAILURE = the read failed and the other fields are meaningless
        particle_type: IAEA particle code (see ParticleType)
        energy: Kinetic energy (MeV)
        weight: Statistical weight
        x, y, z: Position (cm)
        u, v, w: Direction cosines, never renormalized here
        extra_floats: Extension payload, passed through untouched
        extra_ints: Extension payload, passed through untouched
    """

    status: int
    particle_type: int
    energy: float
    weight: float
    x: float
    y: float
    z: float
    u: float
    v: float
    w: float
    extra_floats: tuple[float, ...] = ()
    extra_ints: tuple[int, ...] = ()

    @classmethod
    def failure(cls) -> ParticleRecord:
        """Create the read-failure sentinel record."""
        return cls(READ_FAILURE, 0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

    @property
    def is_failure(self) -> bool:
        return self.status == READ_FAILURE

    @property
    def is_new_history(self) -> bool:
        return self.status > 0
