"""
Core module implementing the main functionality of ProbBreedPy.
"""

import os
import time
import numpy as np
import pandas as pd
from typing import List, Dict, Optional, Any, Union, Mapping, TypedDict
from dataclasses import dataclass, field
from joblib import Parallel, delayed

from probbreedpy.design import TrialIndex, build_trial_index
from probbreedpy.posterior import PosteriorDraws, make_posterior
from probbreedpy.effects import sample_chunks
from probbreedpy.selection import check_intensity
from probbreedpy.reduction import (
    count_superior,
    reduce_counts,
    mask_unobserved,
    aggregate_regions
)


class ProbControl(TypedDict, total=False):
    n_jobs: int
    chunk_size: int
    backend: Optional[str]
    progress: bool
    output_dir: Optional[str]
    file_name: str
    na_rep: str
    float_format: Optional[str]


def cond_prob_control(
    n_jobs: int = 1,
    chunk_size: int = 500,
    backend: Optional[str] = None,
    progress: bool = True,
    output_dir: Optional[str] = None,
    file_name: str = "conds_prob.csv",
    na_rep: str = "NA",
    float_format: Optional[str] = None
) -> ProbControl:
    """
    Create a control object for the cond_prob function.

    Parameters
    ----------
    n_jobs : int
        Number of joblib workers processing sample chunks.
    chunk_size : int
        Number of posterior samples composed and selected at once.
    backend : str, optional
        joblib backend (None lets joblib choose).
    progress : bool
        Whether to display progress.
    output_dir : str, optional
        Directory for exported tables. Defaults to the working directory.
    file_name : str
        Name of the exported genotype-by-environment table.
    na_rep : str
        Marker written for missing cells.
    float_format : str, optional
        Format string for probabilities in exported tables.

    Returns
    -------
    Dict[str, Any]
        Control object for the cond_prob function.
    """
    control: ProbControl = {
        "n_jobs": n_jobs,
        "chunk_size": chunk_size,
        "backend": backend,
        "progress": progress,
        "output_dir": output_dir,
        "file_name": file_name,
        "na_rep": na_rep,
        "float_format": float_format
    }

    return control


def set_control_default(**kwargs) -> ProbControl:
    """
    Set default parameters for the cond_prob control object.

    Parameters
    ----------
    **kwargs
        Control parameters overriding the defaults.

    Returns
    -------
    Dict[str, Any]
        Control object with default parameters.
    """
    return cond_prob_control(**kwargs)


@dataclass
class CondProbResult:
    """
    Class to hold the probabilities of superior performance.
    """
    env_probs: pd.DataFrame                  # Genotypes x environments, NaN where unobserved.
    genotypes: List[Any]                     # Row ordering.
    environments: List[Any]                  # Column ordering of env_probs.
    intensity: float                         # Selection intensity.
    increase: bool                           # Direction of selection.
    n_samples: int                           # Posterior samples consumed.
    execution_time: float = 0.0              # Execution time in seconds.
    reg_probs: Optional[pd.DataFrame] = None # Genotypes x regions, only with regions.
    regions: Optional[List[Any]] = None      # Column ordering of reg_probs.
    env_region: Dict[Any, Any] = field(default_factory=dict)
    figures: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_regions(self) -> bool:
        return self.reg_probs is not None

    def to_long(self, level: str = "environment") -> pd.DataFrame:
        """
        Tidy table with one row per genotype and environment (or region).

        Parameters
        ----------
        level : str
            'environment' or 'region'.

        Returns
        -------
        pd.DataFrame
            Columns 'gen', 'envir' (or 'region') and 'value'; with regions, the
            environment table also carries the 'region' of each environment.
        """
        if level == "environment":
            probs, name = self.env_probs, "envir"
        elif level == "region":
            if not self.has_regions:
                raise ValueError("No region probabilities were computed")
            probs, name = self.reg_probs, "region"
        else:
            raise ValueError(f"Unknown level: {level}")

        long = probs.rename_axis(index="gen", columns=None).reset_index().melt(
            id_vars="gen", var_name=name, value_name="value"
        )
        if level == "environment" and self.has_regions:
            long.insert(2, "region", long["envir"].map(self.env_region))
        return long


def estimate_probabilities(
    index: TrialIndex,
    posterior: PosteriorDraws,
    intensity: float = 0.2,
    increase: bool = True,
    control: Optional[ProbControl] = None,
    verbose: bool = True
) -> CondProbResult:
    """
    Estimate the probabilities of superior performance within environments.

    Parameters
    ----------
    index : TrialIndex
        Identity index of the trial.
    posterior : PosteriorDraws
        Posterior draws aligned with `index`.
    intensity : float
        Selection intensity in (0, 1].
    increase : bool
        True if genotypes with higher values are better.
    control : Dict[str, Any], optional
        Control object (see cond_prob_control).
    verbose : bool
        Whether to display progress messages.

    Returns
    -------
    CondProbResult
        Genotype-by-environment probabilities and, when the index declares
        regions, genotype-by-region probabilities.
    """
    intensity = check_intensity(intensity)

    if control is None:
        control = set_control_default()

    if posterior.index is not index:
        raise ValueError("Posterior draws are aligned with a different trial index")
    if index.has_regions != posterior.has_regions:
        raise ValueError("Posterior region draws do not match the trial index")

    n_jobs = control.get("n_jobs", 1)
    chunk_size = control.get("chunk_size", 500)
    backend = control.get("backend", None)
    show_progress = verbose and control.get("progress", True)

    n_samples = posterior.n_samples
    chunks = list(sample_chunks(n_samples, chunk_size))

    if show_progress:
        print(f"Estimating probabilities over {n_samples} samples, "
              f"{index.n_genotypes} genotypes and {index.n_environments} environments")

    start_time = time.time()

    # Each chunk owns its count array; partial counts are summed afterwards
    if n_jobs != 1 and len(chunks) > 1:
        partials = Parallel(n_jobs=n_jobs, backend=backend)(
            delayed(count_superior)(posterior, start, stop, intensity, increase)
            for start, stop in chunks
        )
    else:
        partials = [
            count_superior(posterior, start, stop, intensity, increase)
            for start, stop in chunks
        ]

    raw = reduce_counts(partials, n_samples)
    raw = pd.DataFrame(raw, index=pd.Index(index.genotypes, name="gen"),
                       columns=pd.Index(index.environments, name="envir"))
    env_probs = mask_unobserved(raw, index.counts)

    reg_probs = None
    if index.has_regions:
        reg_probs = aggregate_regions(env_probs, index.env_region, index.regions)

    execution_time = time.time() - start_time

    if show_progress:
        print(f"Probabilities estimated in {execution_time:.2f} seconds")

    return CondProbResult(
        env_probs=env_probs,
        genotypes=list(index.genotypes),
        environments=list(index.environments),
        intensity=intensity,
        increase=increase,
        n_samples=n_samples,
        execution_time=execution_time,
        reg_probs=reg_probs,
        regions=list(index.regions) if index.has_regions else None,
        env_region=dict(index.env_region)
    )


def cond_prob(
    data: pd.DataFrame,
    gen: str,
    env: str,
    posterior: Union[PosteriorDraws, Mapping[str, Any]],
    trait: Optional[str] = None,
    reg: Optional[str] = None,
    intensity: float = 0.2,
    increase: bool = True,
    save_df: bool = False,
    interactive: bool = False,
    control: Optional[ProbControl] = None,
    verbose: bool = True
) -> CondProbResult:
    """
    Probabilities of superior performance within environments and regions.

    The probability of the jth genotype belonging to the superior subset of
    the kth environment is estimated as the fraction of posterior samples in
    which it ranks among the ceil(intensity * n) best genotypes:

        Pr(g_jk in Omega_k | y) = 1/S * sum_s I(g_jk^(s) in Omega_k | y)

    Parameters
    ----------
    data : pd.DataFrame
        Trial observations.
    gen : str
        Name of the genotype column.
    env : str
        Name of the environment column.
    posterior : PosteriorDraws or mapping
        Posterior draws, either already aligned or a mapping with keys 'g',
        'gl' and (with regions) 'gm'.
    trait : str, optional
        Name of the trait column. Rows with a missing trait are dropped.
    reg : str, optional
        Name of the region column. None skips region probabilities.
    intensity : float
        Selection intensity (superior limit = 1).
    increase : bool
        True if genotypes with higher trait values are better.
    save_df : bool
        Whether to write the probability tables as CSV files.
    interactive : bool
        Whether to render the probability heatmaps.
    control : Dict[str, Any], optional
        Control object (see cond_prob_control).
    verbose : bool
        Whether to display progress messages.

    Returns
    -------
    CondProbResult
        Probabilities of superior performance.
    """
    if verbose:
        print("Starting ProbBreedPy conditional probabilities")

    intensity = check_intensity(intensity)

    if control is None:
        control = set_control_default()

    index = build_trial_index(data, gen, env, reg=reg, trait=trait)

    if isinstance(posterior, PosteriorDraws):
        aligned = posterior.realign(index)
        posterior = make_posterior(index, aligned.g, aligned.gl, aligned.gm)
    else:
        posterior = make_posterior(index, posterior)

    result = estimate_probabilities(
        index, posterior,
        intensity=intensity,
        increase=increase,
        control=control,
        verbose=verbose
    )

    if save_df:
        from probbreedpy.utils import save_probabilities

        output_dir = control.get("output_dir") or os.getcwd()
        file_name = control.get("file_name", "conds_prob.csv")
        na_rep = control.get("na_rep", "NA")
        float_format = control.get("float_format", None)
        save_probabilities(result.env_probs, os.path.join(output_dir, file_name),
                           na_rep=na_rep, float_format=float_format)
        if result.has_regions:
            stem, ext = os.path.splitext(file_name)
            save_probabilities(result.reg_probs, os.path.join(output_dir, f"{stem}_reg{ext}"),
                               na_rep=na_rep, float_format=float_format)
        if verbose:
            print(f"Probability tables written to {output_dir}")

    if interactive:
        from probbreedpy.utils import plot_probability_heatmap

        result.figures["psp_env"] = plot_probability_heatmap(
            result.env_probs, xlabel="Environments", title="Pr(g_jk in Omega_k)"
        )
        if result.has_regions:
            result.figures["psp_reg"] = plot_probability_heatmap(
                result.reg_probs, xlabel="Regions", title="Pr(g_jm in Omega_m)"
            )

    return result
