"""
Data module for ProbBreedPy.

This module provides simulated multi-environment trial datasets together with
posterior draws laid out as a posterior extraction step returns them.
"""

import numpy as np
import pandas as pd
from typing import Dict, Any, Optional


def simulate_met_data(
    n_genotypes: int = 20,
    n_environments: int = 8,
    n_regions: Optional[int] = 2,
    n_samples: int = 400,
    missing_rate: float = 0.15,
    seed: Optional[int] = None
) -> Dict[str, Any]:
    """
    Simulate an unbalanced multi-environment trial and its posterior draws.

    Parameters
    ----------
    n_genotypes : int
        Number of genotypes.
    n_environments : int
        Number of environments.
    n_regions : int, optional
        Number of breeding regions. None simulates a trial without regions.
    n_samples : int
        Number of posterior samples.
    missing_rate : float
        Fraction of genotype/environment cells left untested.
    seed : int, optional
        Random seed for reproducibility.

    Returns
    -------
    Dict[str, Any]
        Dictionary containing:
        - data: DataFrame with columns Gen, Env, (Reg,) eBLUE
        - posterior: dict with 'g' (S x G), 'gl' (S x G*E) and, with regions,
          'gm' (S x G*R), genotype varying fastest within each block
    """
    if n_regions is not None and not 1 <= n_regions <= n_environments:
        raise ValueError("n_regions must lie between 1 and n_environments")

    rng = np.random.default_rng(seed)

    genotypes = [f"G{i + 1:0{len(str(n_genotypes))}d}" for i in range(n_genotypes)]
    environments = [f"E{i + 1:0{len(str(n_environments))}d}" for i in range(n_environments)]

    # Genotype effects
    g_true = rng.normal(0, 1.0, n_genotypes)
    gl_true = rng.normal(0, 0.5, (n_genotypes, n_environments))
    env_means = rng.normal(50, 5, n_environments)

    if n_regions is not None:
        regions = [f"R{i + 1:0{len(str(n_regions))}d}" for i in range(n_regions)]
        env_reg = np.arange(n_environments) % n_regions
        gm_true = rng.normal(0, 0.5, (n_genotypes, n_regions))
    else:
        regions = None
        env_reg = None
        gm_true = None

    tested = rng.random((n_genotypes, n_environments)) >= missing_rate
    # Every genotype and environment keeps at least one observation
    tested[np.arange(n_genotypes), np.arange(n_genotypes) % n_environments] = True
    tested[np.arange(n_environments) % n_genotypes, np.arange(n_environments)] = True

    rows = []
    for j in range(n_genotypes):
        for k in range(n_environments):
            if not tested[j, k]:
                continue
            value = env_means[k] + g_true[j] + gl_true[j, k] + rng.normal(0, 0.5)
            if gm_true is not None:
                value += gm_true[j, env_reg[k]]
            row = {"Gen": genotypes[j], "Env": environments[k]}
            if regions is not None:
                row["Reg"] = regions[env_reg[k]]
            row["eBLUE"] = value
            rows.append(row)
    data = pd.DataFrame(rows)

    # Posterior draws scattered around the true effects
    g = g_true + rng.normal(0, 0.3, (n_samples, n_genotypes))
    gl = gl_true[np.newaxis] + rng.normal(0, 0.3, (n_samples, n_genotypes, n_environments))
    posterior = {
        "g": g,
        "gl": gl.transpose(0, 2, 1).reshape(n_samples, n_environments * n_genotypes)
    }
    if gm_true is not None:
        gm = gm_true[np.newaxis] + rng.normal(0, 0.3, (n_samples, n_genotypes, n_regions))
        posterior["gm"] = gm.transpose(0, 2, 1).reshape(n_samples, n_regions * n_genotypes)

    return {
        "data": data,
        "posterior": posterior
    }
