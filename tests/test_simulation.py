from tensorpreave.simulation import rank_recovery_trials


def test_rank_recovery_table():
    table = rank_recovery_trials(
        [1, 2], K=2, n=60, d=(12, 10), r=(1, 1), re=(1, 1), M0=20, B=10,
    )
    assert list(table.columns) == ["seed", "rank", "rank_correct", "max_distance"]
    assert table["seed"].tolist() == [1, 2]
    assert table["max_distance"].between(0, 1).all()
    assert all(len(rank) == 2 for rank in table["rank"])
