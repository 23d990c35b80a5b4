"""
Synthetic tensor time series from the factor model

    X_t = F_t x_1 A_1 ... x_K A_K + E_t + mu,

with AR(5) core and error series, a sparse cross-sectional common error
component and heteroskedastic idiosyncratic noise (Chen and Lam, 2023).
"""
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .checks import check_positive_int, check_random_state
from .exceptions import InvalidArgumentError
from .tensor_ops import as_tensor, fold, multi_mode_dot

FACTOR_AR = (0.7, 0.3, -0.4, 0.2, -0.1)
COMMON_ERROR_AR = (-0.7, -0.3, -0.4, 0.2, 0.1)
IDIO_ERROR_AR = (0.8, 0.4, -0.4, 0.2, -0.1)
SPARSE_LOADING_PROB = 0.3  # chance that an error loading entry is non-zero


def simulate_ar(
    n: int,
    ar: Sequence[float],
    n_series: int,
    rng: np.random.Generator,
    n_start: int = 6,
    heavy_tailed: bool = False,
    t_df: float = 3,
) -> np.ndarray:
    """
    Simulate `n_series` independent AR(p) series of length n, shape (n, n_series).

    The recursion starts from zeros and the first `n_start` values are
    discarded as burn-in. Innovations are N(0, 1), or Student-t with `t_df`
    degrees of freedom when heavy_tailed is set.
    """
    ar = np.asarray(ar, dtype=float)
    p = ar.shape[0]
    total = n + n_start
    if heavy_tailed:
        innov = rng.standard_t(t_df, size=(total, n_series))
    else:
        innov = rng.standard_normal((total, n_series))

    x = np.zeros((total + p, n_series))
    for t in range(total):
        # x[t+p-1], ..., x[t] are the p most recent values
        x[t + p] = ar @ x[t : t + p][::-1] + innov[t]
    return x[p + n_start :]


def _series_tensor(n, shape, ar, rng, heavy_tailed, t_df):
    """AR series for every entry of `shape`, folded to (n, *shape)."""
    unfolded = simulate_ar(n, ar, int(np.prod(shape)), rng, heavy_tailed=heavy_tailed, t_df=t_df)
    return fold(as_tensor(unfolded), mode=0, shape=(n, *shape))


def _check_per_mode(values, K: int, name: str) -> List[int]:
    values = list(values)
    if len(values) != K:
        raise InvalidArgumentError(f"{name} must have K={K} entries, got {len(values)}")
    return [check_positive_int(v, f"{name}[{k}]") for k, v in enumerate(values)]


def tensor_data_gen(
    K: int,
    n: int,
    d: Sequence[int],
    r: Sequence[int],
    re: Sequence[int],
    eta: Optional[Sequence[Sequence[float]]] = None,
    u: Optional[Sequence[Sequence[float]]] = None,
    heavy_tailed: bool = False,
    t_df: float = 3,
    rng=None,
) -> Dict[str, Any]:
    """
    Generate a tensor time series from the factor model.

    Parameters:
        K            : int          – number of data modes.
        n            : int          – length of the time series.
        d            : list of int  – dimension of each mode.
        r            : list of int  – rank of the core tensor per mode.
        re           : list of int  – rank of the common error core tensor per mode.
        eta          : list         – per mode, r_k exponents; column j of A_k is
                                      scaled by d_k ** -eta[k][j] (default zeros,
                                      i.e. pervasive factors).
        u            : list         – per mode, (low, high) range of the uniform
                                      loading entries (default (-2, 2)).
        heavy_tailed : bool         – Student-t innovations instead of N(0, 1).
        t_df         : float        – degrees of freedom of the t innovations.
        rng          : None / int / numpy Generator.

    Returns:
        dict with "X" (n, d_1..d_K), "A" (list of d_k x r_k loadings),
        "F_ts" (n, r_1..r_K) core series and "E_ts" (n, d_1..d_K) error series,
        all as float64 Tensors.
    """
    K = check_positive_int(K, "K")
    n = check_positive_int(n, "n")
    d = _check_per_mode(d, K, "d")
    r = _check_per_mode(r, K, "r")
    re = _check_per_mode(re, K, "re")
    if eta is None:
        eta = [[0.0] * r_k for r_k in r]
    if u is None:
        u = [(-2.0, 2.0)] * K
    if len(eta) != K or any(len(eta_k) != r_k for eta_k, r_k in zip(eta, r)):
        raise InvalidArgumentError(f"eta must hold K={K} vectors of lengths {r}")
    if len(u) != K or any(len(u_k) != 2 or u_k[0] >= u_k[1] for u_k in u):
        raise InvalidArgumentError("u must hold K (low, high) pairs with low < high")
    if heavy_tailed and t_df <= 0:
        raise InvalidArgumentError(f"t_df must be positive, got {t_df}")
    rng = check_random_state(rng)
    modes = list(range(1, K + 1))

    # non-zero mean
    mu = as_tensor(rng.standard_normal(d))

    # core tensor series: independent AR processes
    F_ts = _series_tensor(n, r, FACTOR_AR, rng, heavy_tailed, t_df)

    # factor loading matrices
    A = []
    for k in range(K):
        U_k = rng.uniform(u[k][0], u[k][1], size=(d[k], r[k]))
        A.append(as_tensor(U_k * float(d[k]) ** -np.asarray(eta[k], dtype=float)))

    # common error component with sparse loadings
    common_e = _series_tensor(n, re, COMMON_ERROR_AR, rng, heavy_tailed, t_df)
    A_e = [
        as_tensor(
            rng.standard_normal((d[k], re[k]))
            * rng.binomial(1, SPARSE_LOADING_PROB, size=(d[k], re[k]))
        )
        for k in range(K)
    ]

    # idiosyncratic error, each series with its own random scale
    idio = simulate_ar(n, IDIO_ERROR_AR, int(np.prod(d)), rng, heavy_tailed=heavy_tailed, t_df=t_df)
    idio = idio * np.abs(rng.standard_normal(idio.shape[1]))
    idio_e = fold(as_tensor(idio), mode=0, shape=(n, *d))

    E_ts = multi_mode_dot(common_e, A_e, modes=modes) + idio_e
    X = multi_mode_dot(F_ts, A, modes=modes) + E_ts + mu

    return {"X": X, "A": A, "F_ts": F_ts, "E_ts": E_ts}
