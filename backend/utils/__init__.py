"""
Utilities package for the size-lock backend.

This package contains utility functions for geometric calculations
(pixel distances, midpoints, pinhole depth, visibility checks).
"""

__version__ = "1.0.0"

from . import geometry

__all__ = ["geometry"]
