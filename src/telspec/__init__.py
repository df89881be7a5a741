"""
Telescope Specification Package

Names and enumerates the parts of a multi-sub-array interferometer
observation: sub-arrays, stations, baselines and closure triangles.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Plotting or cursor handling
    - Visibility storage
    - Closure-phase arithmetic
    - What callers do with a "selected" baseline

This package defines SELECTION STRUCTURE only.

Interactive tools drive "next baseline", "next triangle" and
"which baselines are flagged" through this package unchanged.
"""

__version__ = "0.1.0"
