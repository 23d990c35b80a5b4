"""Shared fixtures: seeded synthetic tensor time series."""
import pytest

from tensorpreave.data_gen import tensor_data_gen


@pytest.fixture(scope="session")
def strong_data():
    """K=2, n=100, d=(40, 40), r=(2, 2): the setting of the package examples."""
    return tensor_data_gen(
        K=2, n=100, d=(40, 40), r=(2, 2), re=(2, 2),
        eta=[(0, 0), (0, 0)], u=[(-2, 2), (-2, 2)], rng=10,
    )


@pytest.fixture(scope="session")
def small_data():
    """Smaller series for argument checks and determinism tests."""
    return tensor_data_gen(K=2, n=60, d=(10, 8), r=(2, 1), re=(1, 1), rng=3)


@pytest.fixture(scope="session")
def three_mode_data():
    return tensor_data_gen(K=3, n=80, d=(12, 10, 8), r=(2, 2, 1), re=(1, 1, 1), rng=5)
