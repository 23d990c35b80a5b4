import numpy as np
import pytest
import torch

from tensorpreave.data_gen import tensor_data_gen
from tensorpreave.exceptions import InvalidArgumentError
from tensorpreave.iter_proj import iter_proj
from tensorpreave.pre_average import pre_est
from tensorpreave.rank_select import block_bootstrap_index, bs_cor_rank, er_rank


@pytest.fixture(scope="module")
def strong_refined(strong_data):
    initial = pre_est(strong_data["X"], rng=10)
    return iter_proj(strong_data["X"], initial)


@pytest.fixture(scope="module")
def small_refined(small_data):
    initial = pre_est(small_data["X"], M0=20, rng=0)
    return iter_proj(small_data["X"], initial)


def test_block_bootstrap_index():
    rng = np.random.default_rng(0)
    index = block_bootstrap_index(50, 4, rng)
    assert index.shape == (50,)
    assert index.min() >= 0 and index.max() < 50
    # consecutive runs inside each block
    blocks = index[:48].reshape(12, 4)
    assert (np.diff(blocks, axis=1) == 1).all()


def test_block_longer_than_series():
    index = block_bootstrap_index(5, 10, np.random.default_rng(1))
    assert index.tolist() == [0, 1, 2, 3, 4]


@pytest.fixture(scope="module")
def short_case():
    data = tensor_data_gen(K=2, n=10, d=(40, 40), r=(2, 2), re=(2, 2), rng=1)
    initial = pre_est(data["X"], M0=20, rng=1)
    return data["X"], iter_proj(data["X"], initial)


class TestBsCorRank:

    def test_recovers_strong_rank(self, strong_data, strong_refined):
        rank = bs_cor_rank(strong_data["X"], strong_refined, B=50, rng=10)
        assert rank == [2, 2]

    def test_bounds(self, small_data, small_refined):
        rank = bs_cor_rank(small_data["X"], small_refined, B=10, rng=0)
        assert len(rank) == 2
        for r_k, d_k in zip(rank, (10, 8)):
            assert 1 <= r_k <= d_k // 2

    def test_r_max_caps_candidates(self, strong_data, strong_refined):
        rank = bs_cor_rank(strong_data["X"], strong_refined, B=10, r_max=1, rng=0)
        assert rank == [1, 1]

    def test_short_series_stays_below_sample_span(self, short_case):
        X, refined = short_case
        # r_max beyond what 10 demeaned periods can span
        rank = bs_cor_rank(X, refined, B=10, r_max=30, rng=1)
        assert all(1 <= r_k <= 8 for r_k in rank)

    def test_reproducible_with_seed(self, small_data, small_refined):
        first = bs_cor_rank(small_data["X"], small_refined, B=10, rng=5)
        second = bs_cor_rank(small_data["X"], small_refined, B=10, rng=5)
        assert first == second

    def test_too_few_replicates(self, small_data, small_refined):
        with pytest.raises(InvalidArgumentError):
            bs_cor_rank(small_data["X"], small_refined, B=1)

    def test_must_cover_all_modes(self, small_data, small_refined):
        with pytest.raises(InvalidArgumentError):
            bs_cor_rank(small_data["X"], small_refined[:1], B=10)
        with pytest.raises(InvalidArgumentError):
            bs_cor_rank(small_data["X"], None, B=10)

    @pytest.mark.parametrize("kwargs", [{"alpha": 0.0}, {"threshold": 1.5}, {"r_max": 0}])
    def test_bad_settings(self, small_data, small_refined, kwargs):
        with pytest.raises(InvalidArgumentError):
            bs_cor_rank(small_data["X"], small_refined, B=10, **kwargs)


class TestErRank:

    def test_recovers_strong_rank(self, strong_data, strong_refined):
        assert er_rank(strong_data["X"], strong_refined) == [2, 2]

    def test_bounds_with_r_max(self, small_data, small_refined):
        rank = er_rank(small_data["X"], small_refined, r_max=3)
        assert all(1 <= r_k <= 3 for r_k in rank)

    def test_short_series_stays_below_sample_span(self, short_case):
        X, refined = short_case
        assert all(1 <= r_k <= 8 for r_k in er_rank(X, refined, r_max=30))

    def test_must_cover_all_modes(self, small_data):
        with pytest.raises(InvalidArgumentError):
            er_rank(small_data["X"], [torch.ones(10, 1)])
