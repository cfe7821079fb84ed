"""
Geometry window configuration for plane-projection filtering.

A window is a plane ``z = z_plane`` plus an axis-aligned rectangle in that
plane. All values are in centimetres, the unit of IAEA phase-space records.

Example:
    >>> from phspcut.window import GeometryWindow, load_window_json
    >>>
    >>> window = GeometryWindow(z_plane=100.0, x_min=-7.0, x_max=7.0, y_min=-7.0, y_max=7.0)
    >>> window = load_window_json("field_14x14.json")
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class GeometryWindow:
    """
    Rectangular window on the plane ``z = z_plane``.

    Attributes:
        z_plane: Plane position along the propagation axis (cm)
        x_min: Lower x bound in the plane, inclusive (cm)
        x_max: Upper x bound in the plane, inclusive (cm)
        y_min: Lower y bound in the plane, inclusive (cm)
        y_max: Upper y bound in the plane, inclusive (cm)
    """

    z_plane: float = 100.0
    x_min: float = -7.0
    x_max: float = 7.0
    y_min: float = -7.0
    y_max: float = 7.0

    def __post_init__(self):
        for name in ("z_plane", "x_min", "x_max", "y_min", "y_max"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be finite")
        if self.x_min > self.x_max:
            raise ValueError("x_min must not exceed x_max")
        if self.y_min > self.y_max:
            raise ValueError("y_min must not exceed y_max")

    def contains(self, px: float, py: float) -> bool:
        """Check if a point in the plane lies inside the closed rectangle."""
        return self.x_min <= px <= self.x_max and self.y_min <= py <= self.y_max

    def replace(self, **changes: float) -> GeometryWindow:
        """Return a copy with some bounds replaced (validated again)."""
        values = window_to_dict(self)
        values.update({k: float(v) for k, v in changes.items() if v is not None})
        return GeometryWindow(**values)


# 14 x 14 cm field at 1 m
DEFAULT_WINDOW = GeometryWindow()

_FIELDS = ("z_plane", "x_min", "x_max", "y_min", "y_max")


def window_from_dict(d: dict) -> GeometryWindow:
    """Create GeometryWindow from dictionary.

    Unknown keys are ignored; missing keys take the defaults.

    :param d: Dictionary with window parameters
    :returns: GeometryWindow instance
    :raises ValueError: If d is not a dictionary or a value is not a number
    """
    if not isinstance(d, dict):
        raise ValueError(f"window must be a JSON object, got {type(d).__name__}")
    kwargs = {}
    for k, v in d.items():
        if k not in _FIELDS:
            continue
        try:
            kwargs[k] = float(v)
        except (TypeError, ValueError) as e:
            raise ValueError(f"{k} must be a number, got {v!r}") from e
    return GeometryWindow(**kwargs)


def window_to_dict(window: GeometryWindow) -> dict:
    """Convert GeometryWindow to dictionary.

    :param window: GeometryWindow instance
    :returns: Dictionary with all window parameters
    """
    return {name: getattr(window, name) for name in _FIELDS}


def load_window_json(path: str | Path) -> GeometryWindow:
    """Load GeometryWindow from JSON file.

    :param path: Path to JSON file
    :returns: GeometryWindow instance
    """
    with open(path) as f:
        d = json.load(f)
    return window_from_dict(d)


def save_window_json(window: GeometryWindow, path: str | Path) -> None:
    """Save GeometryWindow to JSON file.

    :param window: GeometryWindow instance
    :param path: Output path
    """
    with open(path, "w") as f:
        json.dump(window_to_dict(window), f, indent=2)
