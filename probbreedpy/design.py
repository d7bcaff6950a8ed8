"""
Identity index and trial design for multi-environment trials.
"""

import numpy as np
import pandas as pd
from typing import List, Dict, Optional, Any
from dataclasses import dataclass, field

from probbreedpy.exceptions import EmptyDesignError, InconsistentMappingError


@dataclass(frozen=True, eq=False)
class TrialIndex:
    """
    Canonical identity orderings of a multi-environment trial.

    Attributes
    ----------
    genotypes : List[Any]
        Sorted, deduplicated genotype identities.
    environments : List[Any]
        Sorted, deduplicated environment identities.
    regions : List[Any], optional
        Sorted, deduplicated region identities (None without regions).
    env_region : Dict[Any, Any]
        Environment -> region mapping (empty without regions).
    counts : pd.DataFrame
        Observation counts, genotypes x environments.
    """
    genotypes: List[Any]
    environments: List[Any]
    regions: Optional[List[Any]]
    env_region: Dict[Any, Any]
    counts: pd.DataFrame
    gen_pos: Dict[Any, int] = field(init=False, repr=False)
    env_pos: Dict[Any, int] = field(init=False, repr=False)
    reg_pos: Dict[Any, int] = field(init=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "gen_pos", {g: i for i, g in enumerate(self.genotypes)})
        object.__setattr__(self, "env_pos", {e: i for i, e in enumerate(self.environments)})
        object.__setattr__(
            self, "reg_pos",
            {r: i for i, r in enumerate(self.regions)} if self.regions is not None else {}
        )

    @property
    def has_regions(self) -> bool:
        return self.regions is not None

    @property
    def n_genotypes(self) -> int:
        return len(self.genotypes)

    @property
    def n_environments(self) -> int:
        return len(self.environments)

    @property
    def n_regions(self) -> int:
        return len(self.regions) if self.regions is not None else 0

    def region_of(self, env: Any) -> Any:
        """Region an environment belongs to."""
        if not self.has_regions:
            raise InconsistentMappingError("No regions were declared for this trial")
        return self.env_region[env]

    def region_codes(self) -> np.ndarray:
        """Region position of every environment, in environment order."""
        if not self.has_regions:
            raise InconsistentMappingError("No regions were declared for this trial")
        return np.array(
            [self.reg_pos[self.env_region[e]] for e in self.environments], dtype=int
        )

    def observed(self) -> np.ndarray:
        """Boolean matrix (genotypes x environments) of observed cells."""
        return self.counts.to_numpy() > 0


def _check_columns(data: pd.DataFrame, columns: List[str]) -> None:
    missing = [c for c in columns if c not in data.columns]
    if missing:
        raise ValueError(f"Columns not found in data: {missing}")


def _sorted_levels(values: pd.Series, column: str) -> List[Any]:
    try:
        return sorted(pd.unique(values))
    except TypeError:
        kinds = sorted({type(v).__name__ for v in pd.unique(values)})
        raise ValueError(
            f"Column '{column}' mixes identity types that cannot be ordered: {kinds}"
        )


def trial_counts(
    data: pd.DataFrame,
    gen: str,
    env: str,
    genotypes: Optional[List[Any]] = None,
    environments: Optional[List[Any]] = None
) -> pd.DataFrame:
    """
    Count observations per genotype and environment.

    Parameters
    ----------
    data : pd.DataFrame
        Trial observations.
    gen : str
        Genotype column.
    env : str
        Environment column.
    genotypes, environments : list, optional
        Orderings to reindex to. Pairs absent from the data get a count of 0.

    Returns
    -------
    pd.DataFrame
        Integer counts with genotypes as index and environments as columns.
    """
    counts = pd.crosstab(data[gen], data[env])
    if genotypes is not None:
        counts = counts.reindex(index=genotypes, fill_value=0)
    if environments is not None:
        counts = counts.reindex(columns=environments, fill_value=0)
    counts.index.name = gen
    counts.columns.name = env
    return counts.astype(int)


def build_trial_index(
    data: pd.DataFrame,
    gen: str,
    env: str,
    reg: Optional[str] = None,
    trait: Optional[str] = None
) -> TrialIndex:
    """
    Build the identity index of a multi-environment trial from raw observations.

    Parameters
    ----------
    data : pd.DataFrame
        Raw trial observations, one row per plot/mean.
    gen : str
        Name of the genotype column.
    env : str
        Name of the environment column.
    reg : str, optional
        Name of the region column. None skips every region computation.
    trait : str, optional
        Name of the trait column. Rows with a missing trait are dropped.

    Returns
    -------
    TrialIndex
        Sorted identities, environment -> region mapping and observation counts.
    """
    columns = [gen, env] + ([reg] if reg is not None else []) + ([trait] if trait is not None else [])
    _check_columns(data, columns)

    if trait is not None:
        data = data.loc[data[trait].notna()]

    data = data.loc[data[gen].notna() & data[env].notna()]
    if data.empty:
        raise EmptyDesignError("No genotype/environment pair has an observation")

    genotypes = _sorted_levels(data[gen], gen)
    environments = _sorted_levels(data[env], env)

    regions = None
    env_region = {}
    if reg is not None:
        pairs = data[[env, reg]].drop_duplicates()
        unassigned = sorted(pd.unique(pairs.loc[pairs[reg].isna(), env]))
        if unassigned:
            raise InconsistentMappingError(
                f"Environments without a region: {unassigned}"
            )
        n_regions = pairs.groupby(env)[reg].nunique()
        ambiguous = n_regions[n_regions > 1]
        if len(ambiguous) > 0:
            raise InconsistentMappingError(
                f"Environments mapped to more than one region: {sorted(ambiguous.index)}"
            )
        env_region = dict(zip(pairs[env], pairs[reg]))
        regions = _sorted_levels(pd.Series(list(env_region.values())), reg)

    counts = trial_counts(data, gen, env, genotypes, environments)
    if not (counts.to_numpy() > 0).any():
        raise EmptyDesignError("No genotype/environment pair has an observation")

    return TrialIndex(
        genotypes=genotypes,
        environments=environments,
        regions=regions,
        env_region=env_region,
        counts=counts
    )
