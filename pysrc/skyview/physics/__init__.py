"""
Sweep kernel building blocks, compiled with numba.

- **annulus** - weight of one (altitude, azimuth) hemisphere cell
- **raymarch** - latch state machine and the per-ray march
- **sectors** - sector membership, numerator/denominator accumulation, SVF write-out
"""

__all__ = ["annulus", "raymarch", "sectors"]
