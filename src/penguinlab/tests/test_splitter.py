import numpy as np
import pandas as pd
import pytest

from penguinlab.errors import InvalidConfiguration
from penguinlab.splitter import Partition, split, split_dataset


def make_frame(n: int) -> pd.DataFrame:
    return pd.DataFrame({"rid": np.arange(n), "x": np.linspace(0.0, 1.0, n)})


@pytest.fixture
def ten() -> pd.DataFrame:
    return make_frame(10)


# --------- Invariants ---------

@pytest.mark.parametrize("n", [1, 2, 3, 7, 10, 33, 344])
@pytest.mark.parametrize("props", [[0.7, 0.3], [0.6, 0.2, 0.2], [0.5], [0.34, 0.33, 0.33], [1.0], [0.1, 0.1]])
def test_partitions_are_disjoint_and_cover_input(n, props):
    df = make_frame(n)
    parts = split(df, props, seed=123)

    all_idx = np.concatenate([p.indices for p in parts])
    assert sum(len(p) for p in parts) == n
    assert len(np.unique(all_idx)) == n  # no index in two partitions
    assert set(all_idx.tolist()) == set(range(n))
    # records follow indices
    for p in parts:
        assert p.records["rid"].tolist() == p.indices.tolist()
        assert list(p.records.index) == list(range(len(p)))


@pytest.mark.parametrize(
    "n, props, sizes",
    [
        (3, [0.1, 0.1, 0.8], [1, 1, 1]),
        (2, [0.9, 0.1], [1, 1]),
        (12, [0.95, 0.04], [10, 1, 1]),
        (3, [0.1, 0.1], [1, 1, 1]),
    ],
)
def test_no_partition_is_empty_when_rows_suffice(n, props, sizes):
    parts = split(make_frame(n), props, seed=0)
    assert [len(p) for p in parts] == sizes
    assert all(len(p) > 0 for p in parts)


@pytest.mark.parametrize("n", range(3, 40))
@pytest.mark.parametrize("props", [[0.01, 0.01], [0.98, 0.01, 0.01], [0.9, 0.05], [0.05, 0.9, 0.05]])
def test_partitions_non_empty_across_sizes(n, props):
    parts = split(make_frame(n), props, seed=n)
    assert all(len(p) > 0 for p in parts)
    assert sum(len(p) for p in parts) == n


def test_example_seventy_thirty(ten):
    parts = split(ten, [0.7, 0.3], seed=42)
    assert [len(p) for p in parts] == [7, 3]


def test_same_seed_same_membership(ten):
    a = split(ten, [0.6, 0.2, 0.2], seed=9)
    b = split(ten, [0.6, 0.2, 0.2], seed=9)
    for pa, pb in zip(a, b):
        assert np.array_equal(pa.indices, pb.indices)


def test_different_seed_different_membership():
    df = make_frame(50)
    a = split(df, [0.5, 0.5], seed=1)
    b = split(df, [0.5, 0.5], seed=2)
    assert set(a[0].indices.tolist()) != set(b[0].indices.tolist())


def test_generator_seed_is_consumed():
    df = make_frame(30)
    rng = np.random.default_rng(5)
    first = split(df, [0.5, 0.5], seed=rng)
    second = split(df, [0.5, 0.5], seed=rng)
    assert not np.array_equal(first[0].indices, second[0].indices)


def test_implicit_final_partition_takes_remainder(ten):
    parts = split(ten, [0.5, 0.2], seed=0)
    assert [len(p) for p in parts] == [5, 2, 3]
    assert [p.name for p in parts] == ["part0", "part1", "part2"]


def test_last_partition_absorbs_rounding():
    df = make_frame(3)
    parts = split(df, [0.5, 0.5], seed=0)  # round(1.5) == 2
    assert [len(p) for p in parts] == [2, 1]


def test_indices_are_read_only(ten):
    part = split(ten, [0.5, 0.5], seed=0)[0]
    assert isinstance(part, Partition)
    with pytest.raises(ValueError):
        part.indices[0] = 99


def test_does_not_mutate_input(ten):
    before = ten.copy()
    split(ten, [0.7, 0.3], seed=1)
    pd.testing.assert_frame_equal(ten, before)


def test_custom_names(ten):
    parts = split(ten, [0.8], seed=0, names=["fit", "holdout"])
    assert [(p.name, len(p)) for p in parts] == [("fit", 8), ("holdout", 2)]


# --------- split_dataset ---------

def test_split_dataset_names():
    df = make_frame(20)
    assert list(split_dataset(df, [0.6, 0.2, 0.2], seed=0)) == ["train", "validation", "test"]
    assert list(split_dataset(df, [0.6, 0.2], seed=0)) == ["train", "validation", "test"]
    assert list(split_dataset(df, [0.8], seed=0)) == ["train", "validation"]
    assert list(split_dataset(df, [1.0], seed=0)) == ["train"]


def test_split_dataset_too_many_partitions():
    with pytest.raises(InvalidConfiguration):
        split_dataset(make_frame(20), [0.3, 0.3, 0.3], seed=0)


# --------- Errors ---------

def test_sum_above_one_raises(ten):
    with pytest.raises(InvalidConfiguration):
        split(ten, [0.5, 0.6], seed=1)


@pytest.mark.parametrize("props", [[], [0.0, 0.5], [-0.1], [1.2], [0.2, 0.2, 0.2, 0.2], ["0.5"], [float("nan")]])
def test_bad_proportions_raise(ten, props):
    with pytest.raises(InvalidConfiguration):
        split(ten, props, seed=1)


def test_empty_dataset_raises():
    with pytest.raises(InvalidConfiguration):
        split(make_frame(0), [0.7, 0.3], seed=1)


def test_missing_values_raise(ten):
    ten.loc[3, "x"] = np.nan
    with pytest.raises(InvalidConfiguration, match="complete_cases"):
        split(ten, [0.7, 0.3], seed=1)


def test_wrong_number_of_names(ten):
    with pytest.raises(InvalidConfiguration):
        split(ten, [0.7, 0.3], seed=1, names=["train"])


def test_invalid_configuration_is_value_error(ten):
    with pytest.raises(ValueError):
        split(ten, [0.5, 0.6])
