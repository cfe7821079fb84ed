"""
Numba-optimized kernels for window filtering of whole record arrays.

Batch counterpart of ``phspcut.predicate.evaluate``; the decision codes match
``Decision`` values. fastmath stays off so boundary results agree bit for bit
with the per-record predicate.
"""

from __future__ import annotations

import numpy as np
from numba import njit, prange
from numpy.typing import NDArray

from phspcut.window import GeometryWindow

ACCEPT = 0
REJECT_BACKWARD = 1
REJECT_OUTSIDE_WINDOW = 2


@njit(parallel=True, cache=True, nogil=True)
def window_decisions_numba(
    x: NDArray[np.float32],
    y: NDArray[np.float32],
    z: NDArray[np.float32],
    u: NDArray[np.float32],
    v: NDArray[np.float32],
    w: NDArray[np.float32],
    z_plane: float,
    x_min: float,
    x_max: float,
    y_min: float,
    y_max: float,
    out: NDArray[np.int8],
) -> None:
    """
    Apply the plane-projection window test with Numba optimization.

    Args:
        x, y, z: Positions [N]
        u, v, w: Direction cosines [N]
        z_plane: Plane position
        x_min, x_max, y_min, y_max: Closed window bounds in the plane
        out: Output decision codes [N] (modified in-place)
    """
    n = x.shape[0]

    for i in prange(n):
        if w[i] <= 0:
            out[i] = REJECT_BACKWARD
        else:
            if z[i] < z_plane:
                t = (z_plane - z[i]) / w[i]
                px = x[i] + u[i] * t
                py = y[i] + v[i] * t
            else:
                px = x[i]
                py = y[i]

            if px >= x_min and px <= x_max and py >= y_min and py <= y_max:
                out[i] = ACCEPT
            else:
                out[i] = REJECT_OUTSIDE_WINDOW


def evaluate_arrays(
    x: np.ndarray,
    y: np.ndarray,
    z: np.ndarray,
    u: np.ndarray,
    v: np.ndarray,
    w: np.ndarray,
    window: GeometryWindow,
) -> np.ndarray:
    """Compute decision codes for a batch of records.

    Window bounds are cast to the dtype of the position arrays, so float32
    records are decided in float32.

    :param x, y, z: Positions [N]
    :param u, v, w: Direction cosines [N]
    :param window: Geometry window
    :return: int8 array [N] of Decision codes
    """
    dtype = np.result_type(x, y, z, u, v, w)
    if not np.issubdtype(dtype, np.floating):
        dtype = np.dtype(np.float64)
    arrays = [np.ascontiguousarray(a, dtype=dtype) for a in (x, y, z, u, v, w)]
    n = len(arrays[0])
    if any(len(a) != n for a in arrays):
        raise ValueError("all coordinate arrays must have the same length")

    scalar = dtype.type
    out = np.empty(n, dtype=np.int8)
    window_decisions_numba(
        *arrays,
        scalar(window.z_plane),
        scalar(window.x_min),
        scalar(window.x_max),
        scalar(window.y_min),
        scalar(window.y_max),
        out,
    )
    return out
