from __future__ import annotations
from typing import Protocol, Literal
import pandas as pd

Task = Literal["classification", "regression"]

# Dataset Protocol + penguin schema

# Category order is part of the contract: it fixes confusion-matrix order and
# which class is "positive" for binary targets (the second category).
SPECIES: tuple[str, ...] = ("Adelie", "Chinstrap", "Gentoo")
ISLANDS: tuple[str, ...] = ("Biscoe", "Dream", "Torgersen")
SEXES: tuple[str, ...] = ("female", "male")

NUMERIC_COLUMNS: tuple[str, ...] = (
    "bill_length_mm",
    "bill_depth_mm",
    "flipper_length_mm",
    "body_mass_g",
)
CATEGORIES: dict[str, tuple[str, ...]] = {
    "species": SPECIES,
    "island": ISLANDS,
    "sex": SEXES,
}
COLUMNS: tuple[str, ...] = ("species", "island", *NUMERIC_COLUMNS, "sex")


class Dataset(Protocol):
    name: str
    task: Task

    def load(self) -> pd.DataFrame: ...


def category_dtype(column: str) -> pd.CategoricalDtype:
    """Ordered categorical dtype for one of the categorical penguin columns."""
    if column not in CATEGORIES:
        raise KeyError(f"Unknown categorical column '{column}'. Available: {sorted(CATEGORIES)}")
    return pd.CategoricalDtype(categories=list(CATEGORIES[column]), ordered=True)


def complete_cases(frame: pd.DataFrame) -> pd.DataFrame:
    """Return the rows of ``frame`` with no missing field, in input order, reindexed from 0."""
    return frame.dropna(how="any").reset_index(drop=True)
