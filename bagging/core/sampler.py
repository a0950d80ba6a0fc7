"""Bootstrap resampling with per-iteration random generators.

Each iteration draws its sample from its own generator, derived from the
root seed and the iteration index, so samples are reproducible and can be
drawn in any order or in parallel.
"""

from typing import Optional, Tuple
import numpy as np


class BootstrapSampler:
    """Draws bootstrap samples and their out-of-bag sets.

    Attributes:
        random_state: Root seed (None = fresh OS entropy, fixed at construction)
        entropy: Root entropy of the seed sequence all iterations derive from

    Example:
        >>> sampler = BootstrapSampler(random_state=42)
        >>> indices, oob = sampler.draw(iteration=0, n_samples=100)
        >>> print(f"{len(np.unique(indices))} unique rows, {len(oob)} out-of-bag")
    """

    def __init__(self, random_state: Optional[int] = None):
        """Initialize the bootstrap sampler.

        Args:
            random_state: Root seed for reproducibility
        """
        self.random_state = random_state
        self.entropy = np.random.SeedSequence(random_state).entropy

    def iteration_rng(self, iteration: int) -> np.random.Generator:
        """Get the generator for one iteration.

        Equivalent to the iteration-th child of ``SeedSequence.spawn`` on
        the root sequence.

        Args:
            iteration: Iteration index (>= 0)

        Returns:
            Independent NumPy generator for this iteration
        """
        if iteration < 0:
            raise ValueError(f"iteration must be non-negative, got {iteration}")
        seed_seq = np.random.SeedSequence(self.entropy, spawn_key=(iteration,))
        return np.random.default_rng(seed_seq)

    def estimator_seed(self, iteration: int) -> int:
        """Seed for the base learner fitted at one iteration.

        Drawn from its own child sequence, independent of the bootstrap draw.
        """
        if iteration < 0:
            raise ValueError(f"iteration must be non-negative, got {iteration}")
        seed_seq = np.random.SeedSequence(self.entropy, spawn_key=(iteration, 1))
        return int(seed_seq.generate_state(1)[0])

    def sample_indices(self, iteration: int, n_samples: int) -> np.ndarray:
        """Draw n_samples indices uniformly with replacement from [0, n_samples)."""
        if n_samples < 1:
            raise ValueError(f"n_samples must be positive, got {n_samples}")
        rng = self.iteration_rng(iteration)
        return rng.integers(0, n_samples, size=n_samples)

    def draw(self, iteration: int, n_samples: int) -> Tuple[np.ndarray, np.ndarray]:
        """Draw a bootstrap sample and its out-of-bag set.

        Args:
            iteration: Iteration index
            n_samples: Training set size N

        Returns:
            Tuple of (indices, oob_indices): the N drawn indices and the
            sorted indices never drawn (possibly empty)
        """
        indices = self.sample_indices(iteration, n_samples)
        return indices, out_of_bag_indices(indices, n_samples)

    def get_sample_info(self, n_samples: int) -> dict:
        """Expected bootstrap statistics for a training set of n_samples rows.

        Useful for sanity-checking OOB coverage before training.
        """
        # P(row never drawn) = (1 - 1/N)^N, tends to 1/e
        oob_fraction = (1.0 - 1.0 / n_samples) ** n_samples
        return {
            'n_samples': n_samples,
            'expected_unique_fraction': 1.0 - oob_fraction,
            'expected_oob_fraction': oob_fraction,
            'expected_oob_rows': n_samples * oob_fraction
        }


def out_of_bag_indices(indices: np.ndarray, n_samples: int) -> np.ndarray:
    """Sorted indices of [0, n_samples) absent from a bootstrap draw."""
    in_bag = np.zeros(n_samples, dtype=bool)
    in_bag[np.asarray(indices, dtype=int)] = True
    return np.flatnonzero(~in_bag)
