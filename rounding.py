"""
Rounding helpers shared by the calculators.

Halves always round up (toward +inf), so $12.50 rounds to $25 and
$62.50 to $75. Python's built-in ``round`` would send the latter to $50.
"""

from __future__ import annotations

import numpy as np

# Decimal places kept before the half-up step, so 7267.499999999999
# (95,000 x 7.65% in binary floating point) still counts as a half.
_NOISE_DECIMALS = 9


def round_half_up(value):
    """Round to the nearest whole number, halves toward +inf.

    Scalars come back as ``float``; arrays stay arrays.
    """
    x = np.round(np.asarray(value, dtype=float), _NOISE_DECIMALS)
    out = np.floor(x + 0.5)
    return float(out) if out.ndim == 0 else out


def round_to_nearest(value, step: float):
    """Round *value* to the nearest multiple of *step* (half-up)."""
    x = np.round(np.asarray(value, dtype=float) / step, _NOISE_DECIMALS)
    out = np.floor(x + 0.5) * step
    return float(out) if out.ndim == 0 else out
