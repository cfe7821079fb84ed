"""
Run options for the phase-space cutter.

Example:
    >>> from phspcut.config import CutterOptions
    >>>
    >>> # Abort on the 11th unreadable record, fail on any size mismatch
    >>> options = CutterOptions(error_threshold=10, tolerate_size_mismatch=False)
"""

from __future__ import annotations

from dataclasses import dataclass

# Unreadable records tolerated before a run is aborted
ERROR_THRESHOLD = 100

# Processed records between progress messages
PROGRESS_INTERVAL = 1_000_000


@dataclass(frozen=True)
class CutterOptions:
    """
    Options for one cutting run.

    Attributes:
        error_threshold: Cumulative read failures tolerated; the run stops
            when the count exceeds this value
        tolerate_size_mismatch: If True, a data-file size mismatch is only
            a warning; if False it aborts the run before reading
        progress_interval: Processed records between progress log messages
    """

    error_threshold: int = ERROR_THRESHOLD
    tolerate_size_mismatch: bool = True
    progress_interval: int = PROGRESS_INTERVAL

    def __post_init__(self):
        if self.error_threshold < 0:
            raise ValueError("error_threshold must be non-negative")
        if self.progress_interval <= 0:
            raise ValueError("progress_interval must be positive")
