"""Monte Carlo check of rank and loading recovery on synthetic data."""
from typing import Iterable, Optional, Sequence

import pandas as pd
from tqdm import tqdm

from .data_gen import tensor_data_gen
from .metrics import orthonormal_basis, subspace_distance
from .rank_factors import rank_factors_est


def rank_recovery_trials(
    seeds: Iterable[int],
    K: int,
    n: int,
    d: Sequence[int],
    r: Sequence[int],
    re: Sequence[int],
    eta: Optional[Sequence[Sequence[float]]] = None,
    u: Optional[Sequence[Sequence[float]]] = None,
    heavy_tailed: bool = False,
    verbose: bool = False,
    **est_kwargs,
) -> pd.DataFrame:
    """
    For every seed: generate data, estimate the rank, then estimate the
    loadings with the true rank and measure their distance to the true A.

    Extra keyword arguments (M0, M, B, rank_method, ...) go to rank_factors_est.
    Returns one row per seed with columns seed, rank, rank_correct and
    max_distance (sine of the largest principal angle over modes).
    """
    rows = []
    seeds = list(seeds)
    loop = tqdm(seeds, desc="Rank recovery trials") if verbose else seeds
    for seed in loop:
        data = tensor_data_gen(K, n, d, r, re, eta, u, heavy_tailed=heavy_tailed, rng=seed)
        X, A = data["X"], data["A"]

        estimated = rank_factors_est(X, rng=seed, **est_kwargs)
        known = rank_factors_est(X, input_r=r, rng=seed, **est_kwargs)
        # compare against the orthonormal basis of each true loading matrix
        distances = [
            subspace_distance(Q, orthonormal_basis(A_k))
            for Q, A_k in zip(known["loadings"], A)
        ]
        rows.append(
            {
                "seed": seed,
                "rank": tuple(estimated["rank"]),
                "rank_correct": list(estimated["rank"]) == list(r),
                "max_distance": max(distances),
            }
        )
    return pd.DataFrame(rows)
