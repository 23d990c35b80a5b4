"""Iterative projection refinement of factor loading directions."""
import logging
import warnings
from typing import Dict, List, Optional, Sequence, Tuple, Union

import torch

from .checks import check_directions, check_positive_int, check_rank_vector, check_series
from .config import DEFAULT_MAX_ITER, DEFAULT_TOL
from .eigen import sorted_eigh
from .exceptions import ConvergenceWarning, InvalidArgumentError
from .metrics import max_subspace_distance
from .tensor_ops import demean, mode_covariance, project_except

logger = logging.getLogger(__name__)


def iter_proj(
    X,
    initial_direction: Sequence,
    z: Optional[Sequence[int]] = None,
    max_iter: int = DEFAULT_MAX_ITER,
    tol: float = DEFAULT_TOL,
    return_status: bool = False,
    verbose: bool = False,
) -> Union[List[torch.Tensor], Tuple[List[torch.Tensor], Dict]]:
    """
    Refine per-mode directions by cyclic projection.

    For each mode k in turn, X is projected on the current directions of all
    other modes, and the top z_k eigenvectors of the mode-k covariance of the
    projected series replace the mode-k directions. Modes updated earlier in
    a pass are used right away by the later ones. Passes repeat until the
    largest principal-angle distance between consecutive passes drops below
    `tol`, or `max_iter` passes are done (a ConvergenceWarning is emitted and
    the last estimate is returned).

    Parameters:
        X                 : array/Tensor – tensor time series, time on axis 0.
        initial_direction : list         – one d_k x z_k matrix per mode.
        z                 : list of int  – ranks per mode (default ones); must match
                                           the column counts of initial_direction.
        max_iter          : int          – cap on the number of passes.
        tol               : float        – convergence tolerance on the distance.
        return_status     : bool         – also return {"converged", "n_iter", "distance"}.
        verbose           : bool         – log every pass at INFO level.
    """
    X, _, dims = check_series(X)
    z = check_rank_vector(z, dims)
    directions = check_directions(initial_direction, dims)
    given = [Q.shape[1] for Q in directions]
    if given != z:
        raise InvalidArgumentError(
            f"initial_direction has {given} columns per mode but z is {z}"
        )
    max_iter = check_positive_int(max_iter, "max_iter")
    if tol < 0:
        raise InvalidArgumentError(f"tol must be non-negative, got {tol}")

    Xc = demean(X)
    # work on copies so the caller's matrices are untouched
    current = [Q.clone() for Q in directions]
    distance = float("inf")
    converged = False
    n_iter = 0

    for n_iter in range(1, max_iter + 1):
        previous = [Q.clone() for Q in current]
        for k in range(len(dims)):
            projected = project_except(Xc, current, k)
            cov = mode_covariance(projected, k + 1)
            _, vectors = sorted_eigh(cov)
            current[k] = vectors[:, : z[k]]

        distance = max_subspace_distance(previous, current)
        if verbose:
            logger.info("iter_proj pass %d: distance %.3e", n_iter, distance)
        if distance < tol:
            converged = True
            break

    if converged:
        logger.debug("iter_proj converged after %d passes", n_iter)
    else:
        warnings.warn(
            f"iter_proj: distance {distance:.3e} still above tol={tol} after {max_iter} passes",
            ConvergenceWarning,
        )

    if return_status:
        return current, {"converged": converged, "n_iter": n_iter, "distance": distance}
    return current
