"""
Tests for the posterior accessor and the effect composer of ProbBreedPy.
"""

import unittest
import numpy as np
import pandas as pd

from probbreedpy.design import build_trial_index
from probbreedpy.posterior import make_posterior
from probbreedpy.effects import compose_effects, sample_chunks
from probbreedpy.exceptions import DimensionMismatchError, NonFiniteDrawError


class TestPosteriorDraws(unittest.TestCase):
    """
    Test cases for make_posterior and compose_effects.
    """

    def setUp(self):
        """Three genotypes, three environments in two regions, four samples."""
        np.random.seed(0)
        rows = [(g, e) for g in ["A", "B", "C"] for e in ["E1", "E2", "E3"]]
        self.data = pd.DataFrame(rows, columns=["Gen", "Env"])
        self.data["Reg"] = self.data["Env"].map({"E1": "R1", "E2": "R2", "E3": "R1"})
        self.index = build_trial_index(self.data, "Gen", "Env")
        self.reg_index = build_trial_index(self.data, "Gen", "Env", reg="Reg")

        self.S = 4
        self.g = np.random.normal(size=(self.S, 3))
        self.gl = np.random.normal(size=(self.S, 3, 3))
        self.gm = np.random.normal(size=(self.S, 3, 2))

    def test_three_dimensional_input(self):
        post = make_posterior(self.index, self.g, self.gl)
        self.assertEqual(post.n_samples, self.S)
        self.assertFalse(post.has_regions)
        self.assertAlmostEqual(post.main(2, "B"), self.g[2, 1])
        self.assertAlmostEqual(post.interaction(3, "C", "E2"), self.gl[3, 2, 1])

    def test_extraction_layout(self):
        # Genotype varies fastest within each environment block
        flat = self.gl.transpose(0, 2, 1).reshape(self.S, 9)
        post = make_posterior(self.index, self.g, flat)
        np.testing.assert_allclose(post.gl, self.gl)

    def test_dataframe_input(self):
        columns = pd.MultiIndex.from_tuples(
            [(g, e) for e in ["E3", "E1", "E2"] for g in ["C", "A", "B"]]
        )
        pos_g = {"A": 0, "B": 1, "C": 2}
        pos_e = {"E1": 0, "E2": 1, "E3": 2}
        values = np.stack([self.gl[:, pos_g[g], pos_e[e]] for g, e in columns], axis=1)
        gl_df = pd.DataFrame(values, columns=columns)
        g_df = pd.DataFrame(self.g[:, ::-1], columns=["C", "B", "A"])

        post = make_posterior(self.index, g_df, gl_df)
        np.testing.assert_allclose(post.g, self.g)
        np.testing.assert_allclose(post.gl, self.gl)

    def test_mapping_input(self):
        post = make_posterior(self.reg_index, {"g": self.g, "gl": self.gl, "gm": self.gm})
        self.assertTrue(post.has_regions)
        self.assertAlmostEqual(post.regional(1, "A", "R2"), self.gm[1, 0, 1])

    def test_sample_count_mismatch(self):
        with self.assertRaises(DimensionMismatchError):
            make_posterior(self.index, self.g, self.gl[:3])
        with self.assertRaises(DimensionMismatchError):
            make_posterior(self.index, self.g, self.gl, n_samples=5)

    def test_column_count_mismatch(self):
        with self.assertRaises(DimensionMismatchError):
            make_posterior(self.index, self.g, np.zeros((self.S, 8)))
        with self.assertRaises(DimensionMismatchError):
            make_posterior(self.index, self.g[:, :2], self.gl)

    def test_missing_pair_column(self):
        columns = pd.MultiIndex.from_tuples(
            [(g, e) for e in ["E1", "E2", "E3"] for g in ["A", "B", "C"]][:-1]
        )
        gl_df = pd.DataFrame(np.zeros((self.S, 8)), columns=columns)
        with self.assertRaises(DimensionMismatchError):
            make_posterior(self.index, self.g, gl_df)

    def test_missing_region_draws(self):
        with self.assertRaises(DimensionMismatchError):
            make_posterior(self.reg_index, self.g, self.gl)

    def test_realign_by_identity(self):
        post = make_posterior(self.reg_index, self.g, self.gl, self.gm)
        subset = build_trial_index(self.data.loc[self.data["Gen"] != "A"], "Gen", "Env", reg="Reg")
        aligned = post.realign(subset)
        np.testing.assert_allclose(aligned.g, self.g[:, 1:])
        np.testing.assert_allclose(aligned.gl, self.gl[:, 1:, :])
        np.testing.assert_allclose(aligned.gm, self.gm[:, 1:, :])
        self.assertAlmostEqual(aligned.interaction(0, "C", "E3"), self.gl[0, 2, 2])

    def test_realign_missing_identities(self):
        post = make_posterior(self.index, self.g, self.gl)
        other = build_trial_index(self.data.replace({"Gen": {"C": "D"}}), "Gen", "Env")
        with self.assertRaises(DimensionMismatchError):
            post.realign(other)
        with self.assertRaises(DimensionMismatchError):
            post.realign(self.reg_index)

    def test_non_finite_draws(self):
        gl = self.gl.copy()
        gl[0, 0, 0] = np.nan
        with self.assertRaises(NonFiniteDrawError):
            make_posterior(self.index, self.g, gl)

    def test_compose_without_regions(self):
        post = make_posterior(self.index, self.g, self.gl)
        values = compose_effects(post)
        self.assertEqual(values.shape, (self.S, 3, 3))
        np.testing.assert_allclose(values, self.g[:, :, None] + self.gl)

    def test_compose_with_regions(self):
        post = make_posterior(self.reg_index, self.g, self.gl, self.gm)
        values = compose_effects(post, 1, 3)
        self.assertEqual(values.shape, (2, 3, 3))
        # E1 and E3 belong to R1, E2 to R2
        for s in range(2):
            for j in range(3):
                self.assertAlmostEqual(values[s, j, 0], self.g[s + 1, j] + self.gl[s + 1, j, 0] + self.gm[s + 1, j, 0])
                self.assertAlmostEqual(values[s, j, 1], self.g[s + 1, j] + self.gl[s + 1, j, 1] + self.gm[s + 1, j, 1])
                self.assertAlmostEqual(values[s, j, 2], self.g[s + 1, j] + self.gl[s + 1, j, 2] + self.gm[s + 1, j, 0])


def test_sample_chunks_cover_all_samples():
    assert list(sample_chunks(7, 3)) == [(0, 3), (3, 6), (6, 7)]
    assert list(sample_chunks(2, 10)) == [(0, 2)]
