"""
ProbBreedPy: probabilities of superior performance in multi-environment trials
"""

from probbreedpy.core import (
    cond_prob,
    estimate_probabilities,
    cond_prob_control,
    set_control_default,
    CondProbResult
)

from probbreedpy.design import (
    TrialIndex,
    build_trial_index,
    trial_counts
)

from probbreedpy.posterior import (
    PosteriorDraws,
    make_posterior
)

from probbreedpy.effects import compose_effects

from probbreedpy.selection import (
    selection_size,
    superior_indicator,
    superior_set
)

from probbreedpy.reduction import (
    mask_unobserved,
    aggregate_regions
)

from probbreedpy.exceptions import (
    ProbBreedError,
    InvalidIntensityError,
    DimensionMismatchError,
    InconsistentMappingError,
    EmptyDesignError,
    NonFiniteDrawError
)

from probbreedpy.utils import (
    save_probabilities,
    load_probabilities,
    plot_probability_heatmap
)

from probbreedpy.data import simulate_met_data

__version__ = "0.1.0"
