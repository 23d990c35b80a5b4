"""Rank and factor loading estimation for tensor time series by pre-averaging."""
from .data_gen import tensor_data_gen
from .eigen import eigen_ratio
from .exceptions import ConvergenceWarning, InvalidArgumentError
from .iter_proj import iter_proj
from .pre_average import pre_est
from .rank_factors import rank_factors_est
from .rank_select import bs_cor_rank, er_rank

__all__ = [
    "ConvergenceWarning",
    "InvalidArgumentError",
    "bs_cor_rank",
    "eigen_ratio",
    "er_rank",
    "iter_proj",
    "pre_est",
    "rank_factors_est",
    "tensor_data_gen",
]

__version__ = "0.1.0"
