"""State/store layer.

This package is the single source of truth for how tracks arriving from
every feed are fused into one entity per id.
"""

from pysaga.state.store import TrackStore

__all__ = ["TrackStore"]
