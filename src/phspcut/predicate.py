"""
Plane-projection window predicate.

A particle is kept when it moves forward (``w > 0``) and its straight
trajectory crosses the window plane inside the rectangle. Particles already
at or past the plane are tested at their own (x, y).

Arithmetic stays in the precision of the record fields: float32 scalars read
from a phase-space file are combined as float32, Python floats as float64.
"""

from __future__ import annotations

from enum import IntEnum

from phspcut.records import ParticleRecord
from phspcut.window import GeometryWindow


class Decision(IntEnum):
    """Outcome of the window test for one record."""

    ACCEPT = 0
    REJECT_BACKWARD = 1
    REJECT_OUTSIDE_WINDOW = 2

    @property
    def accepted(self) -> bool:
        return self is Decision.ACCEPT


def project_to_plane(record: ParticleRecord, window: GeometryWindow) -> tuple[float, float]:
    """Return the (x, y) point where the record is tested against the window.

    Upstream records (``z < z_plane``) are projected along (u, v, w) onto the
    plane; records at or past the plane keep their own (x, y).

    :param record: Particle record with ``w > 0``
    :param window: Window holding the plane position
    :return: Point (px, py) in the plane
    """
    if record.z < window.z_plane:
        t = (window.z_plane - record.z) / record.w
        return record.x + record.u * t, record.y + record.v * t
    return record.x, record.y


def evaluate(record: ParticleRecord, window: GeometryWindow) -> Decision:
    """Decide whether a record passes the window.

    :param record: Particle record (not a read failure)
    :param window: Geometry window
    :return: Decision.ACCEPT, Decision.REJECT_BACKWARD or Decision.REJECT_OUTSIDE_WINDOW

    Example:
        >>> rec = ParticleRecord(1, 1, 6.0, 1.0, 0.0, 0.0, 50.0, 0.0, 0.0, 1.0)
        >>> evaluate(rec, GeometryWindow(z_plane=100.0))
        <Decision.ACCEPT: 0>
    """
    # w == 0 lands here too, so the projection never divides by zero
    if record.w <= 0:
        return Decision.REJECT_BACKWARD

    px, py = project_to_plane(record, window)
    if window.contains(px, py):
        return Decision.ACCEPT
    return Decision.REJECT_OUTSIDE_WINDOW
