"""
Eigen-decomposition of mode covariance matrices and the eigenvalue-ratio
statistic used both to rank pre-averaging subsamples and to pick ranks.
"""
from typing import Tuple

import torch

from .config import EIGEN_ZERO_TOL, RATIO_SENTINEL
from .exceptions import InvalidArgumentError


def sorted_eigh(matrix: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Eigenvalues in descending order with matching eigenvectors (as columns).

    Each eigenvector is flipped so that its largest-magnitude entry is
    positive, which makes results reproducible across calls.
    """
    sym = (matrix + matrix.t()) / 2
    values, vectors = torch.linalg.eigh(sym)
    values = torch.flip(values, dims=[0])
    vectors = torch.flip(vectors, dims=[1])

    pivot = torch.argmax(torch.abs(vectors), dim=0)
    signs = torch.sign(vectors[pivot, torch.arange(vectors.shape[1], device=vectors.device)])
    signs[signs == 0] = 1.0
    return values, vectors * signs


def _ratio(values: torch.Tensor, j: int) -> float:
    # j is 1-based: lambda_j / lambda_{j+1}
    scale = max(float(torch.abs(values[0])), torch.finfo(values.dtype).tiny)
    denominator = float(values[j])
    if abs(denominator) <= EIGEN_ZERO_TOL * scale:
        return RATIO_SENTINEL
    return float(values[j - 1]) / denominator


def eigen_ratio(
    matrix: torch.Tensor, j: int
) -> Tuple[torch.Tensor, torch.Tensor, float]:
    """
    Eigen-decompose a symmetric matrix and compute the ratio of its j-th to
    (j+1)-th largest eigenvalue.

    Parameters:
        matrix : Tensor  – symmetric d x d matrix, d >= 2.
        j      : int     – 1-based eigenvalue index, 1 <= j <= d-1.

    Returns:
        (eigenvalues in descending order, eigenvectors, ratio). A numerically
        zero (j+1)-th eigenvalue gives RATIO_SENTINEL instead of dividing.
    """
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1] or matrix.shape[0] < 2:
        raise InvalidArgumentError(
            f"eigen_ratio needs a square matrix of size >= 2, got shape {tuple(matrix.shape)}"
        )
    d = matrix.shape[0]
    if not 1 <= j <= d - 1:
        raise InvalidArgumentError(f"j must satisfy 1 <= j <= {d - 1}, got {j}")

    values, vectors = sorted_eigh(matrix)
    return values, vectors, _ratio(values, j)


def ratio_rank(values: torch.Tensor, max_rank: int, candidates=None) -> int:
    """
    Rank maximising lambda_j / lambda_{j+1} over j = 1..max_rank (first maximiser wins).

    `candidates`, if given, restricts the search to those 1-based j.
    """
    max_rank = min(max_rank, values.shape[0] - 1)
    if max_rank < 1:
        raise InvalidArgumentError("ratio_rank needs at least two eigenvalues")
    if candidates is None:
        candidates = range(1, max_rank + 1)
    candidates = [int(j) for j in candidates if 1 <= j <= max_rank]
    if not candidates:
        raise InvalidArgumentError(f"no candidate rank within 1..{max_rank}")
    return max(candidates, key=lambda j: _ratio(values, j))
