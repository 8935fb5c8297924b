"""
Seeded random partitioning of a tabular dataset.

:func:`split` draws one permutation of the row positions and cuts it into
consecutive blocks, one per requested proportion. The last block absorbs any
rounding remainder, so the partitions are pairwise disjoint and together cover
every input row exactly once.

    >>> parts = split(df, [0.7, 0.3], seed=42)          # doctest: +SKIP
    >>> [len(p) for p in parts]
    [7, 3]
    >>> named = split_dataset(df, [0.6, 0.2], seed=0)   # doctest: +SKIP
    >>> list(named)                                     # 0.2 left over -> test
    ['train', 'validation', 'test']
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from numbers import Real
from typing import Sequence

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from .errors import InvalidConfiguration

logger = logging.getLogger(__name__)

MAX_PARTITIONS = 3
EPSILON = 1e-9
PARTITION_NAMES: tuple[str, ...] = ("train", "validation", "test")

Seed = int | np.random.Generator | None


@dataclass(frozen=True)
class Partition:
    """
    One disjoint subset of a dataset.

    Attributes:
        name: Partition label (e.g. ``"train"``).
        indices: Read-only positions of the selected rows in the input dataset,
            in permutation order.
        records: The selected rows, index reset to ``0..len-1``.
    """
    name: str
    indices: NDArray[np.int64]
    records: pd.DataFrame

    def __len__(self) -> int:
        return int(self.indices.shape[0])


def _validate_proportions(proportions: Sequence[float]) -> list[float]:
    """
    Check split ratios and return them as floats.

    Raises:
        InvalidConfiguration: On an empty or too long sequence, a non-numeric
            value, a value outside (0, 1], or a sum above ``1 + EPSILON``.
    """
    props = list(proportions)
    if not 1 <= len(props) <= MAX_PARTITIONS:
        raise InvalidConfiguration(
            f"proportions must hold 1..{MAX_PARTITIONS} fractions; got {len(props)}"
        )
    for i, p in enumerate(props):
        if isinstance(p, bool) or not isinstance(p, Real) or math.isnan(float(p)):
            raise InvalidConfiguration(f"proportions[{i}] must be a number; got {p!r}")
        if not 0.0 < float(p) <= 1.0:
            raise InvalidConfiguration(f"proportions[{i}] must be in (0, 1]; got {p!r}")
    total = math.fsum(float(p) for p in props)
    if total > 1.0 + EPSILON:
        raise InvalidConfiguration(f"proportions must sum to <= 1.0; got {total:g}")
    return [float(p) for p in props]


def _partition_sizes(n: int, proportions: list[float]) -> list[int]:
    """
    Block sizes for `n` rows; an extra block is appended when the ratios leave a remainder.

    Each block gets ``round(p * n)`` rows, raised to 1 and capped so that the
    blocks after it keep one row each. No block is empty when `n` is at least
    the number of blocks.
    """
    implicit_rest = math.fsum(proportions) < 1.0 - EPSILON
    requested = proportions if implicit_rest else proportions[:-1]

    n_blocks = len(requested) + 1
    sizes: list[int] = []
    remaining = n
    for i, p in enumerate(requested):
        # every later block keeps at least one row while n allows it
        blocks_after = n_blocks - i - 1
        size = min(max(int(round(p * n)), 1), remaining - blocks_after)
        size = max(size, 0)
        sizes.append(size)
        remaining -= size
    sizes.append(remaining)  # last block takes all leftovers
    return sizes


def split(
    dataset: pd.DataFrame,
    proportions: Sequence[float],
    seed: Seed = None,
    names: Sequence[str] | None = None,
) -> list[Partition]:
    """
    Randomly partition `dataset` into disjoint subsets.

    Args:
        dataset: Non-empty frame of complete cases (see
            :func:`penguinlab.datasets.base.complete_cases`).
        proportions: 1..3 fractions in (0, 1] summing to <= 1. If they sum to
            less than 1, an implicit final partition receives the leftover rows.
        seed: Integer seed, ``None`` for fresh entropy, or a ``numpy`` Generator.
            The same integer seed always yields the same membership.
        names: Optional labels, one per returned partition (implicit one
            included). Defaults to ``part0``, ``part1``...

    Returns:
        list[Partition]: In the order the proportions were given. None is
            empty when the dataset has at least as many rows as partitions.

    Raises:
        InvalidConfiguration: If the dataset is empty or contains missing
            values, the proportions are invalid, or `names` has the wrong length.
    """
    props = _validate_proportions(proportions)

    n = len(dataset)
    if n == 0:
        raise InvalidConfiguration("dataset must contain at least one record")
    if bool(dataset.isna().any().any()):
        raise InvalidConfiguration(
            "dataset contains missing values; filter it with complete_cases() before splitting"
        )

    sizes = _partition_sizes(n, props)
    if names is None:
        labels = [f"part{i}" for i in range(len(sizes))]
    else:
        labels = list(names)
        if len(labels) != len(sizes):
            raise InvalidConfiguration(
                f"expected {len(sizes)} partition names; got {len(labels)}"
            )

    rng = seed if isinstance(seed, np.random.Generator) else np.random.default_rng(seed)
    order = rng.permutation(n)

    partitions: list[Partition] = []
    start = 0
    for label, size in zip(labels, sizes):
        idx = order[start:start + size].astype(np.int64)
        idx.setflags(write=False)
        records = dataset.iloc[idx].reset_index(drop=True)
        partitions.append(Partition(name=label, indices=idx, records=records))
        start += size

    logger.debug(
        "Split %d records into %s",
        n, ", ".join(f"{p.name}={len(p)}" for p in partitions),
    )
    return partitions


def split_dataset(
    dataset: pd.DataFrame,
    proportions: Sequence[float],
    seed: Seed = None,
) -> dict[str, Partition]:
    """
    Split into named ``train`` / ``validation`` / ``test`` partitions.

    The names are taken in order, so ``[0.8]`` gives ``train`` and ``validation``
    (the leftover 20%), and ``[0.6, 0.2, 0.2]`` gives all three.

    Raises:
        InvalidConfiguration: As :func:`split`, or if the proportions would
            produce more than three partitions.
    """
    props = _validate_proportions(proportions)
    n_parts = len(props) + (1 if math.fsum(props) < 1.0 - EPSILON else 0)
    if n_parts > len(PARTITION_NAMES):
        raise InvalidConfiguration(
            f"proportions {props} leave a remainder; at most {len(PARTITION_NAMES)} "
            "named partitions are supported"
        )
    parts = split(dataset, props, seed=seed, names=PARTITION_NAMES[:n_parts])
    return {p.name: p for p in parts}
