import os
import tempfile

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd

from probbreedpy import cond_prob, simulate_met_data
from probbreedpy.utils import save_probabilities, load_probabilities, plot_probability_heatmap


def _probs():
    return pd.DataFrame(
        [[0.25, np.nan], [1.0, 0.5], [0.0, 0.75]],
        index=pd.Index(["A", "B", "C"], name="gen"),
        columns=["E1", "E2"]
    )


def test_save_and_load_keep_missing_marker():
    with tempfile.TemporaryDirectory() as tmp:
        path = save_probabilities(_probs(), os.path.join(tmp, "probs.csv"), na_rep="NA")
        with open(path) as f:
            assert "A,0.25,NA" in f.read().splitlines()

        loaded = load_probabilities(path)
        assert list(loaded.index) == ["A", "B", "C"]
        assert np.isnan(loaded.loc["A", "E2"])
        assert loaded.loc["C", "E2"] == 0.75


def test_heatmap_written_to_file():
    with tempfile.TemporaryDirectory() as tmp:
        output_file = os.path.join(tmp, "psp_env.png")
        fig = plot_probability_heatmap(_probs(), output_file=output_file)
        assert os.path.exists(output_file)
        # Genotypes ordered by mean probability, lowest at the bottom
        labels = [t.get_text() for t in fig.axes[0].get_yticklabels()]
        assert labels == ["A", "C", "B"]


def test_interactive_rendering_attaches_figures():
    met = simulate_met_data(n_genotypes=6, n_environments=4, n_regions=2, n_samples=20, seed=11)
    result = cond_prob(met["data"], "Gen", "Env", met["posterior"], trait="eBLUE", reg="Reg",
                       intensity=0.2, interactive=True, verbose=False)
    assert set(result.figures) == {"psp_env", "psp_reg"}


def test_simulated_data_shapes():
    met = simulate_met_data(n_genotypes=5, n_environments=3, n_regions=None, n_samples=10, seed=1)
    assert "Reg" not in met["data"].columns
    assert met["posterior"]["g"].shape == (10, 5)
    assert met["posterior"]["gl"].shape == (10, 15)
    assert "gm" not in met["posterior"]
