"""
Tensor helpers the estimators are built on.

Tensor time series are stored with time on axis 0, so the data modes of a
series with K modes sit on axes 1..K. Everything here runs on the tensorly
PyTorch backend in float64.
"""
from typing import List, Sequence

import numpy as np
import tensorly as tl
import torch
from tensorly import fold, unfold
from tensorly.tenalg import multi_mode_dot

# Use PyTorch backend throughout
tl.set_backend("pytorch")
# Automatically use GPU if available
device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
# Set default dtype
torch.set_default_dtype(torch.float64)

__all__ = [
    "as_tensor",
    "demean",
    "device",
    "fold",
    "matricize_n",
    "mode_covariance",
    "mode_series",
    "multi_mode_dot",
    "project_except",
    "time_slice",
]


def as_tensor(data) -> torch.Tensor:
    """Convert a numpy array / torch tensor into a float64 tensor on `device` (no copy when possible)."""
    return torch.as_tensor(data, dtype=torch.float64, device=device)


def matricize_n(tensor: torch.Tensor, mode: int = 0) -> torch.Tensor:
    """Unfolds a tensor into a matrix along a specified mode."""
    return unfold(tensor, mode)


def demean(X: torch.Tensor) -> torch.Tensor:
    """Subtract the time average (axis 0). Returns a new tensor."""
    return X - torch.mean(X, dim=0, keepdim=True)


def time_slice(X: torch.Tensor, index: Sequence[int]) -> torch.Tensor:
    """Select the time points `index` (any order, repeats allowed) from a series."""
    index = torch.as_tensor(np.asarray(index), dtype=torch.long, device=X.device)
    return torch.index_select(X, 0, index)


def mode_covariance(X: torch.Tensor, mode: int) -> torch.Tensor:
    """
    Second moment of the mode-`mode` unfolding, averaged over time:

        (1/T) * sum_t X_(mode),t X_(mode),t^T

    The unfolding of the whole series along `mode` stacks the per-period
    unfoldings side by side, so one matrix product covers all periods.
    """
    X_k = matricize_n(X, mode)
    cov = torch.mm(X_k, X_k.t()) / X.shape[0]
    # remove round-off asymmetry
    return (cov + cov.t()) / 2


def project_except(
    X: torch.Tensor, directions: List[torch.Tensor], k: int
) -> torch.Tensor:
    """
    Contract every data mode except the k-th (0-based, i.e. axis k+1) with
    the transpose of its direction matrix:

        X ×_{j+1} Q_j^T  for all j != k

    The result keeps time and mode k at full size; the other modes shrink to
    the number of columns of their direction matrix.
    """
    others = [j for j in range(len(directions)) if j != k]
    if not others:
        return X
    return multi_mode_dot(
        X, [directions[j] for j in others], modes=[j + 1 for j in others], transpose=True
    )


def mode_series(X: torch.Tensor, mode: int) -> torch.Tensor:
    """Rearrange a series into shape (T, d_mode, m): the mode-`mode` unfolding of each period."""
    moved = torch.movedim(X, mode, 1)
    return moved.reshape(X.shape[0], X.shape[mode], -1)
