"""
phspcut - Phase-space spatial cutting

Filters IAEA phase-space files (radiation transport particle records) by
spatial extent: a particle is kept when its straight trajectory, projected
onto the plane z = Z_PLANE, lands inside a rectangular window.

Features:
- Geometry predicate with forward projection onto the window plane
- Sequential, order-preserving filter engine with read-error tolerance
- IAEA .IAEAheader/.IAEAphsp reader and writer (NumPy buffered)
- Numba batch kernel for previewing acceptance without writing output
- In-memory record streams for tests and embedding

Example - Cut a phase space:
    >>> from phspcut import cut_phase_space, GeometryWindow
    >>>
    >>> window = GeometryWindow(z_plane=100.0, x_min=-7, x_max=7, y_min=-7, y_max=7)
    >>> report = cut_phase_space("beam", "beam_cut", window)
    >>> report.result.accepted

Example - Engine over custom streams:
    >>> from phspcut import FilterEngine, InMemorySink, InMemorySource
    >>>
    >>> engine = FilterEngine(window, error_threshold=10)
    >>> result = engine.run(InMemorySource(records), InMemorySink(), len(records))
"""

__version__ = "0.1.0"

from phspcut.config import ERROR_THRESHOLD, PROGRESS_INTERVAL, CutterOptions
from phspcut.cutter import CutReport, CutStatus, cut_phase_space, preview_window, remove_output_files
from phspcut.engine import FilterEngine, FilterRunStats, RunResult, records_to_read, run_filter
from phspcut.errors import (
    HeaderCopyError,
    HeaderFormatError,
    HeaderUpdateError,
    PhaseSpaceError,
    SourceOpenError,
)
from phspcut.iaea import AccessMode, IAEAHeader, IAEAPhaseSpace, open_source
from phspcut.kernels import evaluate_arrays
from phspcut.predicate import Decision, evaluate, project_to_plane
from phspcut.protocols import RecordSink, RecordSource
from phspcut.records import READ_FAILURE, ParticleRecord, ParticleType
from phspcut.stream import InMemorySink, InMemorySource
from phspcut.window import (
    DEFAULT_WINDOW,
    GeometryWindow,
    load_window_json,
    save_window_json,
    window_from_dict,
    window_to_dict,
)

__all__ = [
    # Version
    "__version__",
    # Records
    "ParticleRecord",
    "ParticleType",
    "READ_FAILURE",
    # Window
    "GeometryWindow",
    "DEFAULT_WINDOW",
    "window_from_dict",
    "window_to_dict",
    "load_window_json",
    "save_window_json",
    # Predicate
    "Decision",
    "evaluate",
    "project_to_plane",
    "evaluate_arrays",
    # Engine
    "FilterEngine",
    "FilterRunStats",
    "RunResult",
    "run_filter",
    "records_to_read",
    # Options
    "CutterOptions",
    "ERROR_THRESHOLD",
    "PROGRESS_INTERVAL",
    # Protocols
    "RecordSource",
    "RecordSink",
    # Streams
    "InMemorySource",
    "InMemorySink",
    "IAEAHeader",
    "IAEAPhaseSpace",
    "AccessMode",
    "open_source",
    # Cutting
    "cut_phase_space",
    "preview_window",
    "remove_output_files",
    "CutReport",
    "CutStatus",
    # Errors
    "PhaseSpaceError",
    "SourceOpenError",
    "HeaderFormatError",
    "HeaderCopyError",
    "HeaderUpdateError",
]
