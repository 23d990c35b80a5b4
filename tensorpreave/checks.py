"""Argument checks shared by the public operations."""
import numbers
from typing import List, Optional, Sequence, Tuple

import numpy as np
import torch

from .exceptions import InvalidArgumentError
from .tensor_ops import as_tensor


def check_series(X) -> Tuple[torch.Tensor, int, List[int]]:
    """Return (X as a float64 tensor, T, [d_1, ..., d_K])."""
    X = as_tensor(X)
    if X.ndim < 2:
        raise InvalidArgumentError(
            f"X must have a time mode and at least one data mode, got shape {tuple(X.shape)}"
        )
    dims = list(X.shape[1:])
    if any(d_k < 2 for d_k in dims):
        raise InvalidArgumentError(f"Every data mode needs dimension >= 2, got {dims}")
    if not torch.isfinite(X).all():
        raise InvalidArgumentError("X contains NaN or infinite values")
    return X, X.shape[0], dims


def check_positive_int(value, name: str, minimum: int = 1) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value < minimum:
        raise InvalidArgumentError(f"{name} must be an integer >= {minimum}, got {value!r}")
    return int(value)


def check_rank_vector(
    z: Optional[Sequence[int]], dims: List[int], name: str = "z"
) -> List[int]:
    """Per-mode ranks; None means one factor per mode."""
    if z is None:
        return [1] * len(dims)
    z = list(z)
    if len(z) != len(dims):
        raise InvalidArgumentError(
            f"{name} must have one entry per mode ({len(dims)}), got {len(z)}"
        )
    for k, (z_k, d_k) in enumerate(zip(z, dims)):
        check_positive_int(z_k, f"{name}[{k}]")
        if z_k > d_k:
            raise InvalidArgumentError(
                f"{name}[{k}]={z_k} exceeds the mode dimension {d_k}"
            )
    return [int(z_k) for z_k in z]


def check_directions(
    directions: Sequence, dims: List[int], name: str = "initial_direction"
) -> List[torch.Tensor]:
    """One matrix per mode, each with d_k rows and at least one column."""
    if directions is None or len(directions) != len(dims):
        n_given = 0 if directions is None else len(directions)
        raise InvalidArgumentError(
            f"{name} must cover all {len(dims)} modes, got {n_given} matrices"
        )
    checked = []
    for k, (Q, d_k) in enumerate(zip(directions, dims)):
        Q = as_tensor(Q)
        if Q.ndim == 1:
            Q = Q.reshape(-1, 1)
        if Q.ndim != 2 or Q.shape[0] != d_k or Q.shape[1] < 1:
            raise InvalidArgumentError(
                f"{name}[{k}] must be a {d_k} x z matrix, got shape {tuple(Q.shape)}"
            )
        checked.append(Q)
    return checked


def check_random_state(rng) -> np.random.Generator:
    """None, an int seed or an existing Generator (returned unchanged)."""
    return np.random.default_rng(rng)
