"""
Posterior accessor for genotype effects.

Wraps the posterior draws of the genotype main effect (g), the
genotype-by-environment interaction (gl) and, optionally, the
genotype-by-region interaction (gm) into dense arrays aligned with a
TrialIndex.
"""

import numpy as np
import pandas as pd
from typing import Dict, Optional, Any, Union, Mapping

from probbreedpy.design import TrialIndex
from probbreedpy.exceptions import DimensionMismatchError, NonFiniteDrawError

ArrayLike = Union[np.ndarray, pd.DataFrame]


class PosteriorDraws:
    """
    Posterior draws indexed by sample, genotype, environment and region.

    Attributes
    ----------
    index : TrialIndex
        Identity orderings the arrays are aligned with.
    g : ndarray
        Main effect draws, shape (S, G).
    gl : ndarray
        Genotype-by-environment draws, shape (S, G, E).
    gm : ndarray, optional
        Genotype-by-region draws, shape (S, G, R). None without regions.
    """

    def __init__(
        self,
        index: TrialIndex,
        g: np.ndarray,
        gl: np.ndarray,
        gm: Optional[np.ndarray] = None
    ):
        self.index = index
        self.g = g
        self.gl = gl
        self.gm = gm

    @property
    def n_samples(self) -> int:
        return self.g.shape[0]

    @property
    def has_regions(self) -> bool:
        return self.gm is not None

    def main(self, s: int, geno: Any) -> float:
        return float(self.g[s, self.index.gen_pos[geno]])

    def interaction(self, s: int, geno: Any, env: Any) -> float:
        return float(self.gl[s, self.index.gen_pos[geno], self.index.env_pos[env]])

    def regional(self, s: int, geno: Any, reg: Any) -> float:
        if self.gm is None:
            raise DimensionMismatchError("No genotype-by-region draws available")
        return float(self.gm[s, self.index.gen_pos[geno], self.index.reg_pos[reg]])

    def realign(self, index: TrialIndex) -> "PosteriorDraws":
        """
        Reindex the draws to another trial index by identity.

        Parameters
        ----------
        index : TrialIndex
            Target identity index.

        Returns
        -------
        PosteriorDraws
            Draws aligned with `index`. Raises DimensionMismatchError when a
            genotype, environment or region of `index` has no draws here.
        """
        def positions(labels, pos, what):
            missing = [x for x in labels if x not in pos]
            if missing:
                raise DimensionMismatchError(f"No posterior draws for {what}: {missing}")
            return [pos[x] for x in labels]

        gi = positions(index.genotypes, self.index.gen_pos, "genotypes")
        ei = positions(index.environments, self.index.env_pos, "environments")
        g = self.g[:, gi]
        gl = self.gl[:, gi][:, :, ei]

        gm = None
        if index.has_regions:
            if self.gm is None:
                raise DimensionMismatchError(
                    "Regions were requested but no genotype-by-region draws were given"
                )
            ri = positions(index.regions, self.index.reg_pos, "regions")
            gm = self.gm[:, gi][:, :, ri]
        return PosteriorDraws(index, g, gl, gm)


def _main_effect(g: ArrayLike, index: TrialIndex) -> np.ndarray:
    if isinstance(g, pd.DataFrame):
        missing = [x for x in index.genotypes if x not in g.columns]
        if missing:
            raise DimensionMismatchError(f"No main effect draws for genotypes: {missing}")
        return g.loc[:, index.genotypes].to_numpy(dtype=float)

    g = np.asarray(g, dtype=float)
    if g.ndim == 1:
        g = g.reshape(-1, 1) if index.n_genotypes == 1 else g.reshape(1, -1)
    if g.ndim != 2 or g.shape[1] != index.n_genotypes:
        raise DimensionMismatchError(
            f"Main effect draws have shape {g.shape}, expected (S, {index.n_genotypes})"
        )
    return g


def _interaction_effect(
    x: ArrayLike,
    genotypes: list,
    levels: list,
    name: str
) -> np.ndarray:
    """
    Arrange interaction draws as (S, G, L).

    A 2-D array is read in the extraction layout: one block of G columns per
    level, genotype varying fastest inside the block.
    """
    n_gen, n_lev = len(genotypes), len(levels)

    if isinstance(x, pd.DataFrame):
        if not isinstance(x.columns, pd.MultiIndex) or x.columns.nlevels != 2:
            raise DimensionMismatchError(
                f"{name} draws given as a DataFrame need two-level (genotype, level) columns"
            )
        wanted = pd.MultiIndex.from_product([levels, genotypes]).swaplevel()
        missing = [pair for pair in wanted if pair not in x.columns]
        if missing:
            raise DimensionMismatchError(
                f"No {name} draws for pairs: {missing[:10]}"
                + (" ..." if len(missing) > 10 else "")
            )
        arr = x.loc[:, wanted].to_numpy(dtype=float)
        return arr.reshape(arr.shape[0], n_lev, n_gen).transpose(0, 2, 1)

    arr = np.asarray(x, dtype=float)
    if arr.ndim == 3:
        if arr.shape[1:] != (n_gen, n_lev):
            raise DimensionMismatchError(
                f"{name} draws have shape {arr.shape}, expected (S, {n_gen}, {n_lev})"
            )
        return arr
    if arr.ndim == 2:
        if arr.shape[1] != n_gen * n_lev:
            raise DimensionMismatchError(
                f"{name} draws have {arr.shape[1]} columns, expected {n_gen * n_lev}"
            )
        return arr.reshape(arr.shape[0], n_lev, n_gen).transpose(0, 2, 1)
    raise DimensionMismatchError(f"{name} draws must be 2-D or 3-D, got {arr.ndim}-D")


def make_posterior(
    index: TrialIndex,
    g: Union[ArrayLike, Mapping[str, ArrayLike]],
    gl: Optional[ArrayLike] = None,
    gm: Optional[ArrayLike] = None,
    n_samples: Optional[int] = None
) -> PosteriorDraws:
    """
    Align posterior draws with the identities of a trial.

    Parameters
    ----------
    index : TrialIndex
        Identity index built from the raw trial data.
    g : ndarray, DataFrame or mapping
        Main effect draws (S x G), or a mapping with keys 'g', 'gl' and
        optionally 'gm' as returned by a posterior extraction step.
    gl : ndarray or DataFrame, optional
        Genotype-by-environment draws: (S, G, E), (S, G*E) in the extraction
        layout, or a DataFrame with (genotype, environment) columns.
    gm : ndarray or DataFrame, optional
        Genotype-by-region draws, same layouts over regions. Required when the
        index declares regions and ignored otherwise.
    n_samples : int, optional
        Declared number of posterior samples. Defaults to the number of main
        effect draws.

    Returns
    -------
    PosteriorDraws
        Draws aligned with the index.
    """
    if isinstance(g, Mapping):
        if gl is not None or gm is not None:
            raise ValueError("Pass either a mapping of effects or separate arrays, not both")
        effects: Dict[str, Any] = dict(g)
        if "g" not in effects or "gl" not in effects:
            raise DimensionMismatchError("Posterior mapping must contain 'g' and 'gl'")
        g, gl, gm = effects["g"], effects["gl"], effects.get("gm")

    if gl is None:
        raise DimensionMismatchError("Genotype-by-environment draws are required")

    g_arr = _main_effect(g, index)
    gl_arr = _interaction_effect(gl, index.genotypes, index.environments, "gl")

    gm_arr = None
    if index.has_regions:
        if gm is None:
            raise DimensionMismatchError(
                "Regions were requested but no genotype-by-region draws were given"
            )
        gm_arr = _interaction_effect(gm, index.genotypes, index.regions, "gm")

    if n_samples is None:
        n_samples = g_arr.shape[0]
    if n_samples < 1:
        raise DimensionMismatchError("At least one posterior sample is required")

    for name, arr in (("g", g_arr), ("gl", gl_arr), ("gm", gm_arr)):
        if arr is None:
            continue
        if arr.shape[0] != n_samples:
            raise DimensionMismatchError(
                f"{name} has {arr.shape[0]} draws, expected {n_samples}"
            )
        if not np.all(np.isfinite(arr)):
            raise NonFiniteDrawError(f"{name} contains NaN or Inf values")

    return PosteriorDraws(index, g_arr, gl_arr, gm_arr)
