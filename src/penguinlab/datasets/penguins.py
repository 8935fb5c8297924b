"""
Palmer penguins loader.

This module exposes a single entry point, :class:`Penguins`, that reads a CSV
with one row per penguin and returns a :class:`pandas.DataFrame` restricted to
the penguin schema, with explicit categorical dtypes.

Typical CSV schema
------------------
- ``species``: ``Adelie`` | ``Chinstrap`` | ``Gentoo``
- ``island``: ``Biscoe`` | ``Dream`` | ``Torgersen``
- ``bill_length_mm``, ``bill_depth_mm``, ``flipper_length_mm``, ``body_mass_g``
- ``sex``: ``female`` | ``male`` (case-insensitive), may be missing

Extra columns (``year``, ``rowid``...) are dropped. Missing values may be written
as ``NA``, ``.`` or left empty.

Quickstart
----------
    >>> from penguinlab.datasets.penguins import Penguins
    >>> df = Penguins(path="penguins.csv").load()
    >>> list(df.columns)
    ['species', 'island', 'bill_length_mm', 'bill_depth_mm', 'flipper_length_mm', 'body_mass_g', 'sex']
    >>> list(df["sex"].cat.categories)
    ['female', 'male']

Drop incomplete records while loading:

    >>> df = Penguins(path="penguins.csv", drop_incomplete=True).load()
    >>> bool(df.isna().any().any())
    False

Raises
------
- ``FileNotFoundError``: when ``path`` is unset or not an existing file.
- ``ValueError``: when a schema column is missing from the file.

Notes
-----
- Category values outside the fixed sets become missing rather than growing
  the category list, so the label order never depends on the file content.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pandas as pd

from penguinlab.registry import register_dataset
from penguinlab.datasets.base import CATEGORIES, COLUMNS, NUMERIC_COLUMNS, category_dtype, complete_cases

logger = logging.getLogger(__name__)

NA_VALUES = ["NA", ".", ""]


@register_dataset("penguins")
@dataclass(slots=True)
class Penguins:
    """
    Palmer penguins dataset loader.

    Attributes:
      name: Dataset name (constant).
      task: Task kind.
      path: Path to the CSV file.
      drop_incomplete: If True, keep only complete cases.
    """
    # Class metadata
    name: str = "penguins"
    task: str = "classification"

    # Configuration
    path: str | Path = ""
    drop_incomplete: bool = False

    # -- Public API
    def load(self) -> pd.DataFrame:
        """Load the penguin table.

        Returns:
          DataFrame with columns in schema order; categorical columns use the
          fixed ordered dtypes from :mod:`penguinlab.datasets.base`, numeric
          columns are float64.

        Raises:
          FileNotFoundError: If `path` is unset or is not an existing file.
          ValueError: If a schema column is missing.
        """
        csv_path = Path(self.path)
        if not str(self.path) or not csv_path.is_file():
            raise FileNotFoundError(f"Not a CSV file: {self.path!r}")

        df = pd.read_csv(csv_path, na_values=NA_VALUES, keep_default_na=True)
        out = self._process_frame(df)
        logger.info("Loaded %d penguin records from %s", len(out), csv_path)
        return out

    # ---- Helper

    def _process_frame(self, df: pd.DataFrame) -> pd.DataFrame:
        """Select schema columns and cast dtypes.

        Args:
          df: Raw frame as read from CSV.

        Returns:
          The normalized frame (complete cases only if `drop_incomplete`).

        Raises:
          ValueError: If a schema column is missing.
        """
        missing = [c for c in COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Expected columns {missing} in the CSV.")

        out = df.loc[:, list(COLUMNS)].copy()
        for col in NUMERIC_COLUMNS:
            out[col] = pd.to_numeric(out[col], errors="coerce").astype(np.float64)
        for col in CATEGORIES:
            values = out[col].astype("string").str.strip()
            if col == "sex":
                values = values.str.lower()
            out[col] = values.astype(object).where(values.notna(), None).astype(category_dtype(col))

        if self.drop_incomplete:
            n_before = len(out)
            out = complete_cases(out)
            logger.debug("Dropped %d incomplete records", n_before - len(out))
        return out.reset_index(drop=True)
