"""
Pre-averaging estimator of the factor-loading directions.

For every mode, random time subsamples are drawn and the mode covariance of
each subsample is scored by an eigenvalue ratio. The covariances of the
best-scoring subsamples are averaged and the leading eigenvectors of the
average give the initial directions, which `iter_proj` then refines.
"""
import logging
from typing import List, Optional, Sequence

import numpy as np
import torch
from tqdm import tqdm

from .checks import (
    check_positive_int,
    check_random_state,
    check_rank_vector,
    check_series,
)
from .config import DEFAULT_M, DEFAULT_M0, MIN_SUBSAMPLE_SIZE
from .eigen import eigen_ratio, sorted_eigh
from .exceptions import InvalidArgumentError
from .tensor_ops import demean, mode_covariance, time_slice

logger = logging.getLogger(__name__)


def _check_eigen_j(eigen_j: Optional[Sequence[int]], dims: List[int]) -> List[int]:
    if eigen_j is None:
        return [max(1, d_k // 2) for d_k in dims]
    eigen_j = list(eigen_j)
    if len(eigen_j) != len(dims):
        raise InvalidArgumentError(
            f"eigen_j must have one entry per mode ({len(dims)}), got {len(eigen_j)}"
        )
    for k, (j, d_k) in enumerate(zip(eigen_j, dims)):
        check_positive_int(j, f"eigen_j[{k}]")
        if j > d_k - 1:
            raise InvalidArgumentError(
                f"eigen_j[{k}]={j} must be at most d_k - 1 = {d_k - 1}"
            )
    return [int(j) for j in eigen_j]


def _check_sample_size(sample_size: Optional[int], T: int) -> int:
    if T < MIN_SUBSAMPLE_SIZE:
        raise InvalidArgumentError(
            f"Time series length {T} is shorter than the minimum subsample size {MIN_SUBSAMPLE_SIZE}"
        )
    if sample_size is None:
        return max(MIN_SUBSAMPLE_SIZE, T // 2)
    sample_size = check_positive_int(sample_size, "sample_size", MIN_SUBSAMPLE_SIZE)
    if sample_size > T:
        raise InvalidArgumentError(
            f"sample_size={sample_size} exceeds the time series length {T}"
        )
    return sample_size


def pre_est(
    X,
    z: Optional[Sequence[int]] = None,
    M0: int = DEFAULT_M0,
    M: int = DEFAULT_M,
    eigen_j: Optional[Sequence[int]] = None,
    sample_size: Optional[int] = None,
    rng=None,
    verbose: bool = False,
) -> List[torch.Tensor]:
    """
    Pre-averaging estimator of the factor loading directions.

    Parameters
    ----------
    X : array or Tensor
        Tensor time series, time on axis 0, shape (T, d_1, ..., d_K).
    z : list of int, optional
        Number of directions to return per mode (default one per mode).
    M0 : int
        Number of random time subsamples drawn per mode.
    M : int
        Number of best subsamples kept for pre-averaging, M <= M0.
    eigen_j : list of int, optional
        1-based index j of the ratio lambda_j / lambda_{j+1} scoring each
        subsample, per mode (default floor(d_k / 2)).
    sample_size : int, optional
        Length of each subsample (default max(MIN_SUBSAMPLE_SIZE, T // 2)).
    rng : None, int or numpy.random.Generator
        Source of randomness for the subsample draws.
    verbose : bool
        Show a tqdm bar over the subsamples.

    Returns
    -------
    list of Tensor
        One d_k x z_k matrix with orthonormal columns per mode.
    """
    X, T, dims = check_series(X)
    M0 = check_positive_int(M0, "M0")
    M = check_positive_int(M, "M")
    if M > M0:
        raise InvalidArgumentError(f"M={M} cannot exceed M0={M0}")
    z = check_rank_vector(z, dims)
    eigen_j = _check_eigen_j(eigen_j, dims)
    sample_size = _check_sample_size(sample_size, T)
    rng = check_random_state(rng)

    Xc = demean(X)
    directions: List[torch.Tensor] = []

    for k, d_k in enumerate(dims):
        covs: List[torch.Tensor] = []
        ratios = np.empty(M0)

        draws = range(M0)
        loop = tqdm(draws, desc=f"Pre-averaging mode {k + 1}") if verbose else draws
        for i in loop:
            index = np.sort(rng.choice(T, size=sample_size, replace=False))
            cov = mode_covariance(time_slice(Xc, index), k + 1)
            _, _, ratios[i] = eigen_ratio(cov, eigen_j[k])
            covs.append(cov)

        # stable sort keeps draw order among tied ratios
        chosen = np.argsort(-ratios, kind="stable")[:M]
        pre_averaged = torch.mean(torch.stack([covs[i] for i in chosen]), dim=0)
        _, vectors = sorted_eigh(pre_averaged)
        directions.append(vectors[:, : z[k]])

        logger.debug(
            "pre_est mode %d: kept %d/%d subsamples of length %d, ratio range [%.3g, %.3g]",
            k + 1, M, M0, sample_size, ratios[chosen[-1]], ratios[chosen[0]],
        )

    return directions
