""" Minimal working example for ProbBreedPy. """
import numpy as np
import pandas as pd
from probbreedpy import cond_prob


def main():
    """Run the three-genotype, two-environment example."""
    print("ProbBreedPy Simple Example")
    print("--------------------------")

    # Genotype C was never tested in E1
    data = pd.DataFrame({
        "Gen": ["A", "B", "A", "B", "C"],
        "Env": ["E1", "E1", "E2", "E2", "E2"],
        "Yield": [5.1, 3.2, 2.4, 4.0, 6.3]
    })

    # Two posterior samples; g is zero so gl holds the composed values
    posterior = {
        "g": np.zeros((2, 3)),
        "gl": np.array([
            [[5.0, 2.0], [3.0, 4.0], [1.0, 6.0]],
            [[4.0, 1.0], [6.0, 5.0], [2.0, 3.0]]
        ])
    }

    result = cond_prob(
        data=data,
        gen="Gen",
        env="Env",
        trait="Yield",
        posterior=posterior,
        intensity=0.34,
        increase=True
    )

    print("\nProbability of superior performance within environments:")
    print(result.env_probs)
    print("\nSimple example completed.")


if __name__ == "__main__":
    main()
