import numpy as np
import pandas as pd
import pytest

from penguinlab.datasets.base import COLUMNS, SEXES, SPECIES, category_dtype, complete_cases
from penguinlab.datasets.penguins import Penguins
from penguinlab.registry import available_datasets, create_dataset


# --------- Fixtures ---------

@pytest.fixture
def raw_df() -> pd.DataFrame:
    # shaped like the public palmerpenguins CSV, including its extra columns
    return pd.DataFrame(
        {
            "rowid": [1, 2, 3, 4],
            "species": ["Adelie", "Gentoo", "Chinstrap", "Adelie"],
            "island": ["Torgersen", "Biscoe", "Dream", "Torgersen"],
            "bill_length_mm": [39.1, 46.1, None, 36.7],
            "bill_depth_mm": [18.7, 13.2, None, 19.3],
            "flipper_length_mm": [181, 211, None, 193],
            "body_mass_g": [3750, 4500, None, 3450],
            "sex": ["male", "FEMALE", None, "female"],
            "year": [2007, 2007, 2008, 2009],
        }
    )


# --------- Unit tests: _process_frame ---------

def test_process_frame_schema_and_dtypes(raw_df: pd.DataFrame) -> None:
    df = Penguins()._process_frame(raw_df)

    assert tuple(df.columns) == COLUMNS
    assert len(df) == 4
    assert df["species"].dtype == category_dtype("species")
    assert list(df["species"].cat.categories) == list(SPECIES)
    assert list(df["sex"].cat.categories) == list(SEXES)
    assert df["bill_length_mm"].dtype == np.float64
    # case-insensitive sex values
    assert df.loc[1, "sex"] == "female"


def test_process_frame_unknown_category_becomes_missing(raw_df: pd.DataFrame) -> None:
    raw_df.loc[0, "species"] = "Emperor"
    df = Penguins()._process_frame(raw_df)
    assert pd.isna(df.loc[0, "species"])
    assert list(df["species"].cat.categories) == list(SPECIES)


def test_process_frame_missing_column_raises(raw_df: pd.DataFrame) -> None:
    with pytest.raises(ValueError):
        Penguins()._process_frame(raw_df.drop(columns=["island"]))


def test_process_frame_drop_incomplete(raw_df: pd.DataFrame) -> None:
    df = Penguins(drop_incomplete=True)._process_frame(raw_df)
    assert len(df) == 3
    assert not df.isna().any().any()
    assert list(df.index) == [0, 1, 2]


def test_complete_cases_keeps_order() -> None:
    df = pd.DataFrame({"a": [1.0, None, 3.0, 4.0], "b": ["x", "y", None, "z"]})
    out = complete_cases(df)
    assert out["a"].tolist() == [1.0, 4.0]
    assert list(out.index) == [0, 1]


def test_category_dtype_unknown_column() -> None:
    with pytest.raises(KeyError):
        category_dtype("bill_length_mm")


# --------- System tests: load() with real CSV ---------

def test_load_from_csv_with_na_markers(tmp_path) -> None:
    csv = tmp_path / "penguins.csv"
    csv.write_text(
        "species,island,bill_length_mm,bill_depth_mm,flipper_length_mm,body_mass_g,sex\n"
        "Adelie,Torgersen,39.1,18.7,181,3750,male\n"
        "Adelie,Torgersen,NA,NA,NA,NA,NA\n"
        "Gentoo,Biscoe,44.5,15.7,217,4875,.\n",
        encoding="utf-8",
    )
    df = Penguins(path=csv).load()
    assert len(df) == 3
    assert df["bill_length_mm"].isna().tolist() == [False, True, False]
    assert df["sex"].isna().tolist() == [False, True, True]

    complete = Penguins(path=csv, drop_incomplete=True).load()
    assert len(complete) == 1


def test_load_missing_file_raises() -> None:
    with pytest.raises(FileNotFoundError):
        Penguins(path="__does_not_exist__.csv").load()


def test_load_without_path_raises() -> None:
    # an empty path would otherwise resolve to the working directory
    with pytest.raises(FileNotFoundError):
        Penguins().load()


def test_load_directory_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        Penguins(path=tmp_path).load()


# --------- Registry ---------

def test_registry_creates_penguins(tmp_path, raw_df: pd.DataFrame) -> None:
    csv = tmp_path / "penguins.csv"
    raw_df.to_csv(csv, index=False)

    assert "penguins" in available_datasets()
    ds = create_dataset("penguins", path=str(csv))
    assert ds.name == "penguins" and ds.task == "classification"
    assert len(ds.load()) == 4


def test_registry_unknown_name() -> None:
    with pytest.raises(KeyError):
        create_dataset("iris")
