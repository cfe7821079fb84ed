"""Exceptions raised by phase-space storage backends."""

from __future__ import annotations


class PhaseSpaceError(Exception):
    """Base class for phase-space storage errors."""


class SourceOpenError(PhaseSpaceError):
    """A phase-space file could not be opened or created."""


class HeaderFormatError(PhaseSpaceError):
    """A header file is missing required sections or holds invalid values."""


class HeaderCopyError(PhaseSpaceError):
    """Header metadata could not be copied to the output stream."""


class HeaderUpdateError(PhaseSpaceError):
    """The output stream rejected the final header update."""
