"""
Reduction of superior-set indicators into probabilities.
"""

import numpy as np
import pandas as pd
from typing import Iterable, Tuple, Dict, Any, List

from probbreedpy.posterior import PosteriorDraws
from probbreedpy.effects import compose_effects
from probbreedpy.selection import superior_indicator
from probbreedpy.exceptions import DimensionMismatchError


def count_superior(
    posterior: PosteriorDraws,
    start: int,
    stop: int,
    intensity: float,
    increase: bool = True
) -> Tuple[np.ndarray, int]:
    """
    Count, for a slice of samples, how often each genotype is superior.

    Returns
    -------
    Tuple[ndarray, int]
        Counts of shape (G, E) and the number of samples consumed.
    """
    values = compose_effects(posterior, start, stop)
    indicator = superior_indicator(values, intensity, increase, axis=1)
    return indicator.sum(axis=0, dtype=np.int64), values.shape[0]


def reduce_counts(
    partials: Iterable[Tuple[np.ndarray, int]],
    n_samples: int
) -> np.ndarray:
    """
    Sum per-chunk counts and divide by the number of samples.

    Raises DimensionMismatchError if the chunks did not cover exactly
    `n_samples` samples.
    """
    total = None
    seen = 0
    for counts, n in partials:
        total = counts.copy() if total is None else total + counts
        seen += n

    if total is None or seen != n_samples:
        raise DimensionMismatchError(
            f"Indicators were reduced over {seen} samples, expected {n_samples}"
        )
    return total / n_samples


def mask_unobserved(probs: pd.DataFrame, counts: pd.DataFrame) -> pd.DataFrame:
    """
    Set cells never observed in the trial to NaN.

    Parameters
    ----------
    probs : pd.DataFrame
        Raw probabilities, genotypes x environments.
    counts : pd.DataFrame
        Observation counts with the same labels.

    Returns
    -------
    pd.DataFrame
        Probabilities with unobserved cells missing.
    """
    counts = counts.reindex(index=probs.index, columns=probs.columns, fill_value=0)
    return probs.where(counts.to_numpy() > 0)


def aggregate_regions(
    env_probs: pd.DataFrame,
    env_region: Dict[Any, Any],
    regions: List[Any]
) -> pd.DataFrame:
    """
    Average masked environment probabilities within each region.

    Missing cells are ignored; a genotype-by-region cell is missing only when
    every environment of the region is missing for that genotype.

    Parameters
    ----------
    env_probs : pd.DataFrame
        Masked probabilities, genotypes x environments.
    env_region : Dict[Any, Any]
        Environment -> region mapping.
    regions : List[Any]
        Region ordering of the output columns.

    Returns
    -------
    pd.DataFrame
        Probabilities, genotypes x regions.
    """
    unmapped = [e for e in env_probs.columns if e not in env_region]
    if unmapped:
        raise DimensionMismatchError(f"Environments without a region: {unmapped}")

    labels = [env_region[e] for e in env_probs.columns]
    reg_probs = env_probs.T.groupby(labels).mean().T
    reg_probs = reg_probs.reindex(columns=regions)
    reg_probs.index.name = env_probs.index.name
    reg_probs.columns.name = "region"
    return reg_probs
