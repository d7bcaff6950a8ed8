"""
Superior-set selection.

Given the composed values of every genotype in one environment (or region)
and one posterior sample, the superior set is made of the k best genotypes,
k = ceil(intensity * n).
"""

import math
import numbers
import numpy as np
from typing import Sequence, List, Any

from probbreedpy.exceptions import InvalidIntensityError


def check_intensity(intensity: float) -> float:
    """Validate a selection intensity and return it as a float."""
    if isinstance(intensity, bool) or not isinstance(intensity, numbers.Real):
        raise InvalidIntensityError(f"Selection intensity must be a number, got {intensity!r}")
    intensity = float(intensity)
    if not math.isfinite(intensity) or intensity <= 0 or intensity > 1:
        raise InvalidIntensityError(
            f"Selection intensity must lie in (0, 1], got {intensity}"
        )
    return intensity


def selection_size(intensity: float, n: int) -> int:
    """
    Number of genotypes in the superior set.

    Parameters
    ----------
    intensity : float
        Selection intensity in (0, 1].
    n : int
        Number of genotypes competing.

    Returns
    -------
    int
        ceil(intensity * n), clamped to [1, n].

    Notes
    -----
    The product is taken in floating point before rounding up, so products
    that land just above an integer gain one genotype: selection_size(0.7, 10)
    is 8 and selection_size(0.1, 30) is 4, not 7 and 3.
    """
    intensity = check_intensity(intensity)
    if n < 1:
        raise ValueError("At least one genotype is required")
    return min(max(math.ceil(intensity * n), 1), n)


def superior_indicator(
    values: np.ndarray,
    intensity: float,
    increase: bool = True,
    axis: int = -2
) -> np.ndarray:
    """
    Flag the superior genotypes.

    Genotypes are ranked along `axis`, best first: descending values when
    `increase` is True, ascending otherwise. Ties keep genotype order, so the
    first k positions are deterministic. Only the relative order of values is
    used.

    Parameters
    ----------
    values : ndarray
        Composed values. For a single sample and environment a 1-D vector over
        genotypes; for batches, genotypes sit on `axis` (default: the
        second-to-last axis of a (S, G, E) array).
    intensity : float
        Selection intensity in (0, 1].
    increase : bool
        True if higher values are better.
    axis : int
        Genotype axis.

    Returns
    -------
    ndarray
        int8 indicator with the shape of `values`; exactly k ones along `axis`
        for every other index.
    """
    values = np.asarray(values, dtype=float)
    if values.ndim == 1:
        axis = 0
    n = values.shape[axis]
    k = selection_size(intensity, n)

    keys = -values if increase else values
    order = np.argsort(keys, axis=axis, kind="stable")
    top = np.take(order, np.arange(k), axis=axis)

    indicator = np.zeros(values.shape, dtype=np.int8)
    np.put_along_axis(indicator, top, 1, axis=axis)
    return indicator


def superior_set(
    values: Sequence[float],
    genotypes: Sequence[Any],
    intensity: float,
    increase: bool = True
) -> List[Any]:
    """
    Identities of the superior genotypes for one sample and one environment.

    Parameters
    ----------
    values : Sequence[float]
        Composed values aligned with `genotypes`.
    genotypes : Sequence[Any]
        Genotype identities.
    intensity : float
        Selection intensity in (0, 1].
    increase : bool
        True if higher values are better.

    Returns
    -------
    List[Any]
        Selected genotypes, best first.
    """
    values = np.asarray(values, dtype=float)
    if values.ndim != 1 or len(values) != len(genotypes):
        raise ValueError("values and genotypes must be 1-D and of the same length")
    k = selection_size(intensity, len(genotypes))
    keys = -values if increase else values
    order = np.argsort(keys, kind="stable")[:k]
    return [genotypes[i] for i in order]
