import numpy as np
import pandas as pd
import pytest

from penguinlab.datasets.base import COLUMNS, category_dtype

# per-species means: bill length, bill depth, flipper length, body mass
MEANS = {
    "Adelie": (38.8, 18.3, 190.0, 3700.0),
    "Chinstrap": (48.8, 18.4, 196.0, 3730.0),
    "Gentoo": (47.5, 15.0, 217.0, 5080.0),
}
ISLAND_OF = {"Adelie": "Torgersen", "Chinstrap": "Dream", "Gentoo": "Biscoe"}


def make_penguins(n_per_species: int = 30, seed: int = 0) -> pd.DataFrame:
    """Well separated synthetic penguins; males are larger than females."""
    rng = np.random.default_rng(seed)
    rows = []
    for species, (bl, bd, fl, bm) in MEANS.items():
        for i in range(n_per_species):
            male = i % 2 == 0
            shift = 1.0 if male else -1.0
            rows.append({
                "species": species,
                "island": ISLAND_OF[species],
                "bill_length_mm": bl + 1.5 * shift + rng.normal(0, 0.8),
                "bill_depth_mm": bd + 0.6 * shift + rng.normal(0, 0.3),
                "flipper_length_mm": fl + 3.0 * shift + rng.normal(0, 2.0),
                "body_mass_g": bm + 300.0 * shift + rng.normal(0, 60.0),
                "sex": "male" if male else "female",
            })
    df = pd.DataFrame(rows, columns=list(COLUMNS))
    for col in ("species", "island", "sex"):
        df[col] = df[col].astype(category_dtype(col))
    return df


@pytest.fixture
def penguins_df() -> pd.DataFrame:
    return make_penguins()


@pytest.fixture
def penguins_csv(tmp_path) -> str:
    df = make_penguins().astype({"species": str, "island": str, "sex": str})
    df.loc[0, "sex"] = "NA"  # one incomplete record
    path = tmp_path / "penguins.csv"
    df.to_csv(path, index=False)
    return str(path)
