"""
Probabilities of superior performance within environments and breeding regions.

Simulates an unbalanced multi-environment trial with posterior draws of the
genotype main effect, the genotype-by-environment and the genotype-by-region
interactions, then estimates the probability of each genotype ranking among
the best 20% in every environment and region.
"""

import os
import sys

import matplotlib
matplotlib.use("Agg")

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from probbreedpy import cond_prob, set_control_default, simulate_met_data
from probbreedpy.utils import plot_probability_heatmap


def main():
    print("ProbBreedPy Regional Example")
    print("----------------------------")

    met = simulate_met_data(
        n_genotypes=30,
        n_environments=10,
        n_regions=3,
        n_samples=2000,
        missing_rate=0.2,
        seed=2022
    )
    data = met["data"]
    print(f"\nTrial with {data['Gen'].nunique()} genotypes, {data['Env'].nunique()} environments, "
          f"{data['Reg'].nunique()} regions and {len(data)} observations")

    output_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "output")
    os.makedirs(output_dir, exist_ok=True)

    control = set_control_default(n_jobs=2, chunk_size=250, output_dir=output_dir)

    result = cond_prob(
        data=data,
        trait="eBLUE",
        gen="Gen",
        env="Env",
        reg="Reg",
        posterior=met["posterior"],
        intensity=0.2,
        increase=True,
        save_df=True,
        control=control
    )

    print("\nGenotypes most often superior across regions:")
    ranking = result.reg_probs.mean(axis=1).sort_values(ascending=False)
    print(ranking.head(10).round(3))

    plot_probability_heatmap(
        result.env_probs, xlabel="Environments",
        output_file=os.path.join(output_dir, "psp_env.png")
    )
    plot_probability_heatmap(
        result.reg_probs, xlabel="Regions",
        output_file=os.path.join(output_dir, "psp_reg.png")
    )
    print(f"\nTables and heatmaps written to {output_dir}")


if __name__ == "__main__":
    main()
