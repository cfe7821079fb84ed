"""Record stream backends that are not tied to a file format."""

from phspcut.stream.memory import InMemorySink, InMemorySource

__all__ = [
    "InMemorySource",
    "InMemorySink",
]
