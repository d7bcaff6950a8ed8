"""
Utility functions for ProbBreedPy.
"""

import numpy as np
import pandas as pd
from typing import Optional


def save_probabilities(
    probs: pd.DataFrame,
    path: str,
    na_rep: str = "NA",
    float_format: Optional[str] = None
) -> str:
    """
    Write a probability matrix as CSV.

    Parameters
    ----------
    probs : pd.DataFrame
        Probabilities, genotypes as rows.
    path : str
        Output file.
    na_rep : str, optional
        Marker for missing cells.
    float_format : str, optional
        Format string for the probabilities (e.g. '%.4f').

    Returns
    -------
    str
        Path of the written file.
    """
    out = probs.copy()
    out.index.name = out.index.name or "gen"
    out.columns.name = None
    out.to_csv(path, na_rep=na_rep, float_format=float_format)
    return path


def load_probabilities(path: str, na_rep: str = "NA") -> pd.DataFrame:
    """Read a probability matrix written by save_probabilities."""
    return pd.read_csv(path, index_col=0, na_values=[na_rep], keep_default_na=False)


def plot_probability_heatmap(
    probs: pd.DataFrame,
    title: str = 'Probability of superior performance',
    xlabel: str = 'Environments',
    ylabel: str = 'Genotypes',
    output_file: str = None
):
    """
    Plot a probability matrix as a heatmap.

    Genotypes are ordered by their mean probability, missing cells are drawn
    in grey.

    Parameters
    ----------
    probs : pd.DataFrame
        Probabilities, genotypes as rows.
    title : str, optional
        Plot title
    xlabel : str, optional
        X-axis label
    ylabel : str, optional
        Y-axis label
    output_file : str, optional
        Path to save the plot

    Returns
    -------
    matplotlib.figure.Figure
        The heatmap figure.
    """
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        raise ImportError("matplotlib is required to plot probabilities. Install it with 'pip install matplotlib'.")

    order = probs.mean(axis=1, skipna=True).fillna(-1).sort_values(kind="stable").index
    ordered = probs.loc[order]

    cmap = plt.get_cmap('viridis_r').copy()
    cmap.set_bad('#D3D7DC')

    fig, ax = plt.subplots(figsize=(max(6, 0.5 * ordered.shape[1] + 3), max(4, 0.3 * ordered.shape[0] + 2)))
    image = ax.imshow(np.ma.masked_invalid(ordered.to_numpy(dtype=float)),
                      cmap=cmap, vmin=0, vmax=1, aspect='auto', origin='lower')
    ax.set_xticks(np.arange(ordered.shape[1]))
    ax.set_xticklabels([str(c) for c in ordered.columns], rotation=90)
    ax.set_yticks(np.arange(ordered.shape[0]))
    ax.set_yticklabels([str(g) for g in ordered.index])
    ax.set_title(title)
    ax.set_xlabel(xlabel)
    ax.set_ylabel(ylabel)
    fig.colorbar(image, ax=ax)
    fig.tight_layout()

    if output_file:
        fig.savefig(output_file)
    else:
        plt.show()

    return fig
