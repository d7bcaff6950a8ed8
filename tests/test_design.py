"""
Tests for the trial identity index of ProbBreedPy.
"""

import unittest
import numpy as np
import pandas as pd

from probbreedpy.design import build_trial_index, trial_counts
from probbreedpy.exceptions import EmptyDesignError, InconsistentMappingError


class TestTrialIndex(unittest.TestCase):
    """
    Test cases for build_trial_index.
    """

    def setUp(self):
        """Set up an unbalanced trial."""
        self.data = pd.DataFrame({
            "Gen": ["C", "A", "B", "A", "B", "C", "A"],
            "Env": ["E2", "E1", "E1", "E2", "E3", "E3", "E3"],
            "Reg": ["R1", "R1", "R1", "R1", "R2", "R2", "R2"],
            "Y": [1.0, 2.0, 3.0, 4.0, 5.0, np.nan, 7.0]
        })

    def test_sorted_identities(self):
        index = build_trial_index(self.data, "Gen", "Env")
        self.assertEqual(index.genotypes, ["A", "B", "C"])
        self.assertEqual(index.environments, ["E1", "E2", "E3"])
        self.assertIsNone(index.regions)
        self.assertFalse(index.has_regions)
        self.assertEqual(index.gen_pos["C"], 2)
        self.assertEqual(index.env_pos["E3"], 2)

    def test_regions(self):
        index = build_trial_index(self.data, "Gen", "Env", reg="Reg")
        self.assertEqual(index.regions, ["R1", "R2"])
        self.assertEqual(index.env_region, {"E1": "R1", "E2": "R1", "E3": "R2"})
        self.assertEqual(index.region_of("E3"), "R2")
        np.testing.assert_array_equal(index.region_codes(), [0, 0, 1])

    def test_counts(self):
        index = build_trial_index(self.data, "Gen", "Env")
        self.assertEqual(index.counts.loc["C", "E1"], 0)
        self.assertEqual(index.counts.loc["C", "E3"], 1)
        self.assertEqual(index.counts.to_numpy().sum(), 7)

    def test_missing_trait_rows_are_dropped(self):
        index = build_trial_index(self.data, "Gen", "Env", trait="Y")
        self.assertEqual(index.counts.loc["C", "E3"], 0)
        self.assertFalse(index.observed()[2, 2])

    def test_environment_in_two_regions(self):
        data = self.data.copy()
        data.loc[4, "Reg"] = "R1"
        with self.assertRaises(InconsistentMappingError):
            build_trial_index(data, "Gen", "Env", reg="Reg")

    def test_environment_without_region(self):
        data = self.data.copy()
        data.loc[:, "Reg"] = data["Reg"].where(data["Env"] != "E2")
        with self.assertRaises(InconsistentMappingError):
            build_trial_index(data, "Gen", "Env", reg="Reg")

    def test_region_lookup_without_regions(self):
        index = build_trial_index(self.data, "Gen", "Env")
        with self.assertRaises(InconsistentMappingError):
            index.region_of("E1")

    def test_empty_design(self):
        data = self.data.assign(Y=np.nan)
        with self.assertRaises(EmptyDesignError):
            build_trial_index(data, "Gen", "Env", trait="Y")

    def test_mixed_identity_types(self):
        data = self.data.copy()
        data["Gen"] = data["Gen"].astype(object)
        data.loc[0, "Gen"] = 7
        with self.assertRaisesRegex(ValueError, "Gen"):
            build_trial_index(data, "Gen", "Env")

    def test_missing_column(self):
        with self.assertRaises(ValueError):
            build_trial_index(self.data, "Genotype", "Env")


def test_trial_counts_reindexes_with_zeros():
    data = pd.DataFrame({"g": ["a", "a", "b"], "e": ["x", "x", "y"]})
    counts = trial_counts(data, "g", "e", genotypes=["a", "b", "c"], environments=["x", "y", "z"])
    assert counts.shape == (3, 3)
    assert counts.loc["a", "x"] == 2
    assert counts.loc["c", "z"] == 0
    assert counts.loc["b", "y"] == 1
