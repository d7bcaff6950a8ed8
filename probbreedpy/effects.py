"""
Composition of genotype-by-environment values from posterior effects.
"""

import numpy as np
from typing import Iterator, Optional, Tuple

from probbreedpy.posterior import PosteriorDraws


def compose_effects(
    posterior: PosteriorDraws,
    start: int = 0,
    stop: Optional[int] = None
) -> np.ndarray:
    """
    Compose per-sample genotype-by-environment values.

    value[s, j, k] = g[s, j] + gl[s, j, k] + gm[s, j, region(k)]

    The region term is only added when the posterior carries region draws.
    Every (genotype, environment) cell is composed, observed or not.

    Parameters
    ----------
    posterior : PosteriorDraws
        Aligned posterior draws.
    start, stop : int, optional
        Sample slice to compose. Defaults to all samples.

    Returns
    -------
    ndarray
        Composed values, shape (stop - start, G, E).
    """
    if stop is None:
        stop = posterior.n_samples

    values = posterior.g[start:stop, :, np.newaxis] + posterior.gl[start:stop]
    if posterior.has_regions:
        # Broadcast each region's draw to the environments it contains
        codes = posterior.index.region_codes()
        values = values + posterior.gm[start:stop][:, :, codes]
    return values


def sample_chunks(n_samples: int, chunk_size: int) -> Iterator[Tuple[int, int]]:
    """Yield (start, stop) bounds covering range(n_samples)."""
    if chunk_size < 1:
        raise ValueError("chunk_size must be a positive integer")
    for start in range(0, n_samples, chunk_size):
        yield start, min(start + chunk_size, n_samples)
