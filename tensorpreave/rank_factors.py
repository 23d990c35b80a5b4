"""End-to-end estimation of ranks and factor loadings."""
import logging
from typing import Any, Dict, Optional, Sequence

from .checks import check_positive_int, check_random_state, check_rank_vector, check_series
from .config import DEFAULT_B, DEFAULT_M, DEFAULT_M0, DEFAULT_MAX_ITER, DEFAULT_TOL
from .exceptions import InvalidArgumentError
from .iter_proj import iter_proj
from .pre_average import pre_est
from .rank_select import bs_cor_rank, er_rank

logger = logging.getLogger(__name__)

RANK_METHODS = ("bs_cor", "eigen_ratio")


def rank_factors_est(
    X,
    input_r: Optional[Sequence[int]] = None,
    M0: int = DEFAULT_M0,
    M: int = DEFAULT_M,
    eigen_j: Optional[Sequence[int]] = None,
    B: int = DEFAULT_B,
    rank_method: str = "bs_cor",
    max_iter: int = DEFAULT_MAX_ITER,
    tol: float = DEFAULT_TOL,
    rng=None,
    verbose: bool = False,
) -> Dict[str, Any]:
    """
    Estimate the rank of the core tensor and the factor loading directions.

    If `input_r` is given the rank is taken as known: pre-averaging and
    iterative projection run once with z = input_r. Otherwise one-factor
    directions are estimated and refined, the rank is selected from them
    (`bs_cor_rank`, or `er_rank` with rank_method="eigen_ratio"), and
    pre-averaging plus iterative projection are re-run with that rank.

    Returns a dict with "rank" (list of int) and "loadings" (list of
    d_k x r_k Tensors with orthonormal columns).
    """
    X, _, dims = check_series(X)
    if rank_method not in RANK_METHODS:
        raise InvalidArgumentError(
            f"Unknown rank_method '{rank_method}', choose one of {RANK_METHODS}"
        )
    M0 = check_positive_int(M0, "M0")
    M = check_positive_int(M, "M")
    if M > M0:
        raise InvalidArgumentError(f"M={M} cannot exceed M0={M0}")
    B = check_positive_int(B, "B", 2)
    max_iter = check_positive_int(max_iter, "max_iter")
    if tol < 0:
        raise InvalidArgumentError(f"tol must be non-negative, got {tol}")
    if input_r is not None:
        input_r = check_rank_vector(input_r, dims, name="input_r")
    rng = check_random_state(rng)

    if input_r is None:
        coarse = pre_est(X, M0=M0, M=M, eigen_j=eigen_j, rng=rng, verbose=verbose)
        refined = iter_proj(X, coarse, max_iter=max_iter, tol=tol, verbose=verbose)
        if rank_method == "bs_cor":
            rank = bs_cor_rank(X, refined, B=B, rng=rng, verbose=verbose)
        else:
            rank = er_rank(X, refined)
    else:
        rank = input_r

    initial = pre_est(X, z=rank, M0=M0, M=M, eigen_j=eigen_j, rng=rng, verbose=verbose)
    loadings = iter_proj(X, initial, z=rank, max_iter=max_iter, tol=tol, verbose=verbose)

    logger.info("rank_factors_est: rank %s", rank)
    return {"rank": rank, "loadings": loadings}
