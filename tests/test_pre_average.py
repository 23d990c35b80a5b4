import numpy as np
import pytest
import torch

from tensorpreave.exceptions import InvalidArgumentError
from tensorpreave.metrics import orthonormal_basis, orthonormality_error, subspace_distance
from tensorpreave.pre_average import pre_est


class TestPreEst:

    def test_default_one_direction_per_mode(self, small_data):
        directions = pre_est(small_data["X"], M0=20, rng=0)
        assert [tuple(Q.shape) for Q in directions] == [(10, 1), (8, 1)]

    def test_orthonormal_columns(self, small_data):
        directions = pre_est(small_data["X"], z=(3, 2), M0=30, M=4, rng=1)
        for Q in directions:
            assert orthonormality_error(Q) < 1e-10

    def test_reproducible_with_seed(self, small_data):
        first = pre_est(small_data["X"], z=(2, 1), M0=25, rng=7)
        second = pre_est(small_data["X"], z=(2, 1), M0=25, rng=7)
        for Q1, Q2 in zip(first, second):
            assert torch.equal(Q1, Q2)

    def test_accepts_generator_and_numpy_input(self, small_data):
        X = small_data["X"].cpu().numpy()
        directions = pre_est(X, M0=10, M=2, rng=np.random.default_rng(4))
        assert len(directions) == 2

    def test_does_not_mutate_input(self, small_data):
        X = small_data["X"]
        before = X.clone()
        pre_est(X, M0=10, rng=0)
        assert torch.equal(X, before)

    def test_three_modes(self, three_mode_data):
        directions = pre_est(three_mode_data["X"], z=(2, 2, 1), M0=20, rng=2)
        assert [tuple(Q.shape) for Q in directions] == [(12, 2), (10, 2), (8, 1)]

    def test_recovers_strong_loadings(self, strong_data):
        directions = pre_est(strong_data["X"], z=(2, 2), rng=10)
        for Q, A_k in zip(directions, strong_data["A"]):
            assert subspace_distance(Q, orthonormal_basis(A_k)) < 0.5


class TestPreEstArguments:

    def test_m_larger_than_m0(self, small_data):
        with pytest.raises(InvalidArgumentError):
            pre_est(small_data["X"], M0=5, M=10)

    @pytest.mark.parametrize("z", [(11, 1), (0, 1), (1,), (1, 1, 1)])
    def test_bad_rank(self, small_data, z):
        with pytest.raises(InvalidArgumentError):
            pre_est(small_data["X"], z=z, M0=5)

    @pytest.mark.parametrize("eigen_j", [(10, 1), (0, 1), (2,)])
    def test_bad_eigen_j(self, small_data, eigen_j):
        with pytest.raises(InvalidArgumentError):
            pre_est(small_data["X"], eigen_j=eigen_j, M0=5)

    def test_series_too_short(self, small_data):
        with pytest.raises(InvalidArgumentError):
            pre_est(small_data["X"][:5], M0=5)

    @pytest.mark.parametrize("sample_size", [5, 61])
    def test_bad_sample_size(self, small_data, sample_size):
        with pytest.raises(InvalidArgumentError):
            pre_est(small_data["X"], sample_size=sample_size, M0=5)

    @pytest.mark.parametrize("M0", [0, 2.5, True])
    def test_bad_m0(self, small_data, M0):
        with pytest.raises(InvalidArgumentError):
            pre_est(small_data["X"], M0=M0, M=1)
