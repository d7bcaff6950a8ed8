"""
Exceptions raised by ProbBreedPy.

All errors derive from ValueError so that callers checking for invalid
inputs the usual way keep working.
"""


class ProbBreedError(ValueError):
    """Base class for invalid inputs to the probability engine."""


class InvalidIntensityError(ProbBreedError):
    """Selection intensity outside (0, 1]."""


class DimensionMismatchError(ProbBreedError):
    """Posterior draws inconsistent with the genotype/environment/region sets."""


class InconsistentMappingError(ProbBreedError):
    """An environment resolves to no region or to more than one region."""


class EmptyDesignError(ProbBreedError):
    """No genotype/environment pair has any observation."""


class NonFiniteDrawError(ProbBreedError):
    """A posterior draw is NaN or infinite."""
