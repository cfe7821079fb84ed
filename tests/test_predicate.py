"""Tests for the plane-projection window predicate."""

import numpy as np
import pytest

from phspcut import Decision, GeometryWindow, ParticleRecord, evaluate, project_to_plane

WINDOW = GeometryWindow(z_plane=100.0, x_min=-7.0, x_max=7.0, y_min=-7.0, y_max=7.0)


def create_record(x=0.0, y=0.0, z=50.0, u=0.0, v=0.0, w=1.0, **kwargs) -> ParticleRecord:
    """Create a photon record with the given position and direction."""
    fields = dict(status=1, particle_type=1, energy=6.0, weight=1.0)
    fields.update(kwargs)
    return ParticleRecord(x=x, y=y, z=z, u=u, v=v, w=w, **fields)


class TestConcreteRecords:
    """Test the reference records."""

    def test_on_axis_record_accepted(self):
        """Record at (0, 0, 50) moving along +z projects to (0, 0)."""
        record = create_record(x=0.0, y=0.0, z=50.0, u=0.0, v=0.0, w=1.0)
        assert project_to_plane(record, WINDOW) == (0.0, 0.0)
        assert evaluate(record, WINDOW) is Decision.ACCEPT

    def test_offset_record_outside(self):
        """Record at x = 10 moving along +z projects to (10, 0)."""
        record = create_record(x=10.0, y=0.0, z=50.0, u=0.0, v=0.0, w=1.0)
        assert project_to_plane(record, WINDOW) == (10.0, 0.0)
        assert evaluate(record, WINDOW) is Decision.REJECT_OUTSIDE_WINDOW

    def test_backward_record_rejected(self):
        """Record with w = -0.5 is rejected whatever its position."""
        record = create_record(x=0.0, y=0.0, z=50.0, u=0.0, v=0.866, w=-0.5)
        assert evaluate(record, WINDOW) is Decision.REJECT_BACKWARD


class TestBackwardRejection:
    """Test rejection of particles not moving towards +z."""

    @pytest.mark.parametrize("w", [0.0, -0.0, -1e-12, -0.5, -1.0])
    @pytest.mark.parametrize("position", [(0.0, 0.0, 50.0), (0.0, 0.0, 150.0), (100.0, -50.0, 99.9)])
    def test_non_positive_w(self, w, position):
        """Any w <= 0 is REJECT_BACKWARD."""
        x, y, z = position
        record = create_record(x=x, y=y, z=z, w=w)
        assert evaluate(record, WINDOW) is Decision.REJECT_BACKWARD

    def test_zero_w_upstream_does_not_divide(self):
        """w = 0 upstream of the plane must not reach the projection."""
        record = create_record(z=0.0, u=1.0, v=0.0, w=0.0)
        # Python floats would raise ZeroDivisionError on (z_plane - z) / w
        assert evaluate(record, WINDOW) is Decision.REJECT_BACKWARD


class TestProjection:
    """Test forward projection onto the window plane."""

    @pytest.mark.parametrize(
        "x, y, z, u, v, w",
        [
            (1.0, 2.0, 10.0, 0.1, -0.05, 0.9937),
            (-3.0, 4.5, 99.5, 0.3, 0.4, 0.866),
            (0.25, -0.75, -20.0, -0.02, 0.01, 0.9997),
        ],
    )
    def test_projection_formula(self, x, y, z, u, v, w):
        """Projected point equals (x + u*t, y + v*t) with t = (z_plane - z) / w."""
        record = create_record(x=x, y=y, z=z, u=u, v=v, w=w)
        t = (WINDOW.z_plane - z) / w
        assert project_to_plane(record, WINDOW) == (x + u * t, y + v * t)

    def test_oblique_record_leaves_window(self):
        """A record starting on axis can project outside the window."""
        # t = 100, px = 10
        record = create_record(x=0.0, y=0.0, z=0.0, u=0.1, v=0.0, w=1.0)
        assert project_to_plane(record, WINDOW) == pytest.approx((10.0, 0.0))
        assert evaluate(record, WINDOW) is Decision.REJECT_OUTSIDE_WINDOW

    def test_oblique_record_enters_window(self):
        """A record starting off axis can project inside the window."""
        record = create_record(x=-20.0, y=0.0, z=0.0, u=0.2, v=0.0, w=1.0)
        assert evaluate(record, WINDOW) is Decision.ACCEPT

    @pytest.mark.parametrize("z", [100.0, 100.5, 250.0])
    def test_at_or_past_plane_uses_raw_position(self, z):
        """Records at or past the plane are tested at their own (x, y)."""
        # Back-projection would move this record outside the window
        record = create_record(x=6.0, y=0.0, z=z, u=0.9, v=0.0, w=0.1)
        assert project_to_plane(record, WINDOW) == (6.0, 0.0)
        assert evaluate(record, WINDOW) is Decision.ACCEPT

    def test_float32_precision_kept(self):
        """float32 record fields are projected in float32."""
        f = np.float32
        record = create_record(x=f(1.5), y=f(-2.0), z=f(10.0), u=f(0.01), v=f(0.02), w=f(0.9997))
        px, py = project_to_plane(record, WINDOW)
        assert px.dtype == np.float32
        assert py.dtype == np.float32


class TestBoundaryInclusivity:
    """Test that all four window edges are inside."""

    @pytest.mark.parametrize(
        "x, y",
        [(-7.0, 0.0), (7.0, 0.0), (0.0, -7.0), (0.0, 7.0), (-7.0, -7.0), (7.0, 7.0)],
    )
    def test_edges_accepted(self, x, y):
        """Points exactly on an edge or corner are accepted."""
        record = create_record(x=x, y=y, z=100.0)
        assert evaluate(record, WINDOW) is Decision.ACCEPT

    @pytest.mark.parametrize("x, y", [(-7.001, 0.0), (7.001, 0.0), (0.0, -7.001), (0.0, 7.001)])
    def test_just_outside_rejected(self, x, y):
        """Points just past an edge are rejected."""
        record = create_record(x=x, y=y, z=100.0)
        assert evaluate(record, WINDOW) is Decision.REJECT_OUTSIDE_WINDOW

    def test_projected_onto_edge_accepted(self):
        """A projected point landing exactly on X_MAX is accepted."""
        # t = 40, px = 2 + 0.125 * 40 = 7
        record = create_record(x=2.0, y=0.0, z=50.0, u=0.125, v=0.0, w=1.25)
        assert project_to_plane(record, WINDOW)[0] == 7.0
        assert evaluate(record, WINDOW) is Decision.ACCEPT

    def test_degenerate_window(self):
        """A zero-area window accepts only its single point."""
        window = GeometryWindow(z_plane=0.0, x_min=1.0, x_max=1.0, y_min=2.0, y_max=2.0)
        assert evaluate(create_record(x=1.0, y=2.0, z=0.0), window) is Decision.ACCEPT
        assert evaluate(create_record(x=1.0, y=2.5, z=0.0), window) is Decision.REJECT_OUTSIDE_WINDOW


class TestDecision:
    """Test Decision helpers."""

    def test_accepted_property(self):
        assert Decision.ACCEPT.accepted
        assert not Decision.REJECT_BACKWARD.accepted
        assert not Decision.REJECT_OUTSIDE_WINDOW.accepted
