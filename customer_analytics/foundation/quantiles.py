"""Quintile breakpoints used to band RFM dimensions into 1-5 scores."""

from __future__ import annotations

from typing import Sequence

import numpy as np

#: Number of equally sized bands; breakpoints sit at k/QUINTILES for k = 1..4.
QUINTILES = 5


def calculate_quantile_breakpoints(
    values: Sequence[float],
) -> tuple[float, float, float, float]:
    """Return the 20/40/60/80th percentile breakpoints of ``values``.

    The sample is sorted ascending and indexed at ``floor(n * p)``; no
    interpolation is performed and duplicates are not special-cased, so
    a sample of one value yields four identical breakpoints.

    Raises
    ------
    ValueError
        If ``values`` is empty. Callers guard against empty populations
        and return an empty result instead.

    Examples
    --------
    >>> calculate_quantile_breakpoints([5, 1, 4, 2, 3])
    (2, 3, 4, 5)
    """
    if len(values) == 0:
        raise ValueError("Cannot calculate quantile breakpoints of an empty sample")

    ordered = np.sort(np.asarray(values))
    n = len(ordered)
    # floor(n * k / 5) in integer arithmetic so n * 0.6 cannot round down
    b0, b1, b2, b3 = (ordered[(n * k) // QUINTILES].item() for k in range(1, QUINTILES))
    return b0, b1, b2, b3


def get_score(value: float, breakpoints: Sequence[float]) -> int:
    """Band ``value`` into 1-5 against four ascending breakpoints."""
    if value <= breakpoints[0]:
        return 1
    if value <= breakpoints[1]:
        return 2
    if value <= breakpoints[2]:
        return 3
    if value <= breakpoints[3]:
        return 4
    return 5
