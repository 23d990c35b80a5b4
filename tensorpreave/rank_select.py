"""
Rank selection from refined loading directions.

`bs_cor_rank` is the bootstrapped correlation estimator: for each mode the
data are projected on the other modes' directions, candidate factor series
are read off the leading eigenvectors, and a moving-block bootstrap of the
time axis checks which leading spans of candidate factors are reproduced
(high canonical correlation) across resamples. Directions driven by noise
rotate freely from one resample to the next and break the correlation.
Among the reproduced spans the rank is read off the sharpest eigenvalue
drop, since a persistent common error component is reproduced too.

`er_rank` is the plain eigenvalue-ratio estimator on the same projected
covariances.
"""
import logging
import math
from typing import List, Optional, Sequence

import numpy as np
import torch
from tqdm import tqdm

from .checks import check_directions, check_positive_int, check_random_state, check_series
from .config import DEFAULT_ALPHA, DEFAULT_B, DEFAULT_THRESHOLD
from .eigen import ratio_rank, sorted_eigh
from .exceptions import InvalidArgumentError
from .tensor_ops import demean, mode_covariance, mode_series, project_except, time_slice

logger = logging.getLogger(__name__)


def block_bootstrap_index(T: int, block_length: int, rng: np.random.Generator) -> np.ndarray:
    """Moving-block bootstrap: concatenate random length-`block_length` runs of 0..T-1, cut to T."""
    block_length = min(block_length, T)
    n_blocks = math.ceil(T / block_length)
    starts = rng.integers(0, T - block_length + 1, size=n_blocks)
    return (starts[:, None] + np.arange(block_length)).ravel()[:T]


def _orthonormal_span(F: torch.Tensor) -> torch.Tensor:
    # nested: the first j columns of Q span the first j columns of F
    Q, _ = torch.linalg.qr(F - torch.mean(F, dim=0, keepdim=True))
    return Q


def _span_correlations(Q_ref: torch.Tensor, Q_boot: torch.Tensor) -> np.ndarray:
    """Smallest canonical correlation between the first j columns, for j = 1..p."""
    C = torch.mm(Q_ref.t(), Q_boot)
    p = C.shape[0]
    return np.array(
        [float(torch.min(torch.linalg.svdvals(C[:j, :j]))) for j in range(1, p + 1)]
    )


def _candidate_limit(r_max: Optional[int], d_k: int, T: int, m: int) -> int:
    limit = r_max if r_max is not None else max(1, d_k // 2)
    # demeaned over time, the (T * m) observations span at most (T - 1) * m
    # dimensions; lambda_{j+1} must stay inside that span
    return max(1, min(limit, d_k - 1, (T - 1) * m - 1))


def _mode_bootstrap_stats(
    series: torch.Tensor,
    vectors: torch.Tensor,
    p: int,
    B: int,
    block_length: int,
    rng: np.random.Generator,
    desc: str,
    verbose: bool,
) -> np.ndarray:
    """(B, p) bootstrapped span correlations for one mode's projected series (T, d_k, m)."""
    T, d_k, m = series.shape
    # one row per (period, column) observation of the d_k-variate series
    observations = series.permute(0, 2, 1).reshape(T * m, d_k)
    Q_ref = _orthonormal_span(torch.mm(observations, vectors[:, :p]))

    stats = np.empty((B, p))
    replicates = range(B)
    loop = tqdm(replicates, desc=desc) if verbose else replicates
    for b in loop:
        resampled = time_slice(series, block_bootstrap_index(T, block_length, rng))
        resampled = resampled - torch.mean(resampled, dim=0, keepdim=True)
        _, vectors_b = sorted_eigh(mode_covariance(resampled, 1))
        Q_boot = _orthonormal_span(torch.mm(observations, vectors_b[:, :p]))
        stats[b] = _span_correlations(Q_ref, Q_boot)
    return stats


def bs_cor_rank(
    X,
    initial_direction: Sequence,
    B: int = DEFAULT_B,
    alpha: float = DEFAULT_ALPHA,
    threshold: float = DEFAULT_THRESHOLD,
    r_max: Optional[int] = None,
    block_length: Optional[int] = None,
    rng=None,
    verbose: bool = False,
) -> List[int]:
    """
    Bootstrapped correlation rank estimator.

    A leading span of j candidate factors counts as reproduced when the
    alpha-quantile of its bootstrapped correlations reaches `threshold`.
    Persistent error structure (a sparse common error component) is also
    reproduced, so among the reproduced j the rank is the one with the
    sharpest eigenvalue drop lambda_j / lambda_{j+1}.

    Parameters
    ----------
    X : array or Tensor
        Tensor time series, time on axis 0.
    initial_direction : list of Tensor
        Refined directions for every mode, typically `iter_proj` output.
    B : int
        Number of bootstrap replicates, at least 2.
    alpha : float
        Lower quantile of the bootstrapped correlations that is compared
        with `threshold`.
    threshold : float
        Correlation level separating factor spans from noise.
    r_max : int, optional
        Largest rank considered per mode (default floor(d_k / 2)). Also
        capped at d_k - 1 and at (T - 1) * m - 1, where m is the number of
        columns left after projecting on the other modes.
    block_length : int, optional
        Block length of the moving-block bootstrap (default ceil(T ** (1/3))).
    rng : None, int or numpy.random.Generator
    verbose : bool
        Show a tqdm bar over the replicates.

    Returns
    -------
    list of int
        Estimated rank per mode; 1 when no span is reproduced.
    """
    X, T, dims = check_series(X)
    B = check_positive_int(B, "B", 2)
    directions = check_directions(initial_direction, dims)
    if not 0 < alpha < 1:
        raise InvalidArgumentError(f"alpha must be in (0, 1), got {alpha}")
    if not 0 < threshold < 1:
        raise InvalidArgumentError(f"threshold must be in (0, 1), got {threshold}")
    if r_max is not None:
        r_max = check_positive_int(r_max, "r_max")
    if block_length is None:
        block_length = math.ceil(T ** (1 / 3))
    block_length = check_positive_int(block_length, "block_length")
    rng = check_random_state(rng)

    Xc = demean(X)
    ranks = []
    for k, d_k in enumerate(dims):
        series = mode_series(project_except(Xc, directions, k), k + 1)
        p = _candidate_limit(r_max, d_k, T, series.shape[2])
        values, vectors = sorted_eigh(mode_covariance(series, 1))

        stats = _mode_bootstrap_stats(
            series, vectors, p, B, block_length, rng, f"Bootstrap mode {k + 1}", verbose
        )
        lower = np.quantile(stats, alpha, axis=0)
        accepted = np.flatnonzero(lower >= threshold) + 1
        rank_k = ratio_rank(values, p, candidates=accepted) if accepted.size else 1
        ranks.append(rank_k)

        logger.debug(
            "bs_cor_rank mode %d: lower correlations %s, reproduced %s -> rank %d",
            k + 1, np.round(lower, 3).tolist(), accepted.tolist(), rank_k,
        )

    logger.info("bs_cor_rank estimated ranks %s", ranks)
    return ranks


def er_rank(
    X, initial_direction: Sequence, r_max: Optional[int] = None
) -> List[int]:
    """
    Eigenvalue-ratio rank estimator: per mode, the j maximising
    lambda_j / lambda_{j+1} of the covariance of X projected on the other
    modes' directions, searched over j <= r_max (default floor(d_k / 2)).
    """
    X, T, dims = check_series(X)
    directions = check_directions(initial_direction, dims)
    if r_max is not None:
        r_max = check_positive_int(r_max, "r_max")

    Xc = demean(X)
    ranks = []
    for k, d_k in enumerate(dims):
        series = mode_series(project_except(Xc, directions, k), k + 1)
        values, _ = sorted_eigh(mode_covariance(series, 1))
        ranks.append(ratio_rank(values, _candidate_limit(r_max, d_k, T, series.shape[2])))

    logger.info("er_rank estimated ranks %s", ranks)
    return ranks
