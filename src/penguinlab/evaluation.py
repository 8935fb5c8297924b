"""
Scoring of predicted labels against observed labels.

:func:`evaluate` is a pure function: accuracy plus a confusion matrix with
observed labels on the rows and predicted labels on the columns, both as raw
counts and as row proportions.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Hashable, Sequence

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike

from .errors import EmptyInput, EvaluationError, LengthMismatch, UnknownLabel


@dataclass(frozen=True)
class EvaluationResult:
    """
    Outcome of one evaluation call.

    Attributes:
        accuracy: Fraction of positions where prediction equals observation.
        n: Number of scored positions.
        labels: Row/column order of the matrices.
        counts: Observed x predicted counts (``int64``), zeros included.
        proportions: `counts` normalized per row; an observed label that never
            occurs has an all-zero row.
    """
    accuracy: float
    n: int
    labels: tuple[Hashable, ...]
    counts: pd.DataFrame
    proportions: pd.DataFrame

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view: nested ``{observed: {predicted: value}}`` mappings."""
        def nested(frame: pd.DataFrame, cast: type) -> dict[str, dict[str, Any]]:
            return {
                str(obs): {str(pred): cast(frame.at[obs, pred]) for pred in frame.columns}
                for obs in frame.index
            }
        return {
            "accuracy": self.accuracy,
            "n": self.n,
            "labels": [str(lab) for lab in self.labels],
            "counts": nested(self.counts, int),
            "proportions": nested(self.proportions, float),
        }


def _as_1d(values: ArrayLike | Sequence[Any], what: str) -> np.ndarray:
    """One label per position; a string is a sequence of one-character labels."""
    if isinstance(values, str):
        values = list(values)
    arr = np.asarray(values, dtype=object)
    if arr.ndim == 2 and arr.shape[1] == 1:
        return arr[:, 0]
    if arr.ndim != 1:
        raise EvaluationError(
            f"{what} labels must be one-dimensional (or a single column); got shape {arr.shape}"
        )
    return arr


def _resolve_labels(
    predicted: ArrayLike,
    observed: ArrayLike,
    pred_arr: np.ndarray,
    obs_arr: np.ndarray,
    labels: Sequence[Hashable] | None,
) -> list[Hashable]:
    """Explicit labels win, then categorical dtype order, then the sorted union."""
    if labels is not None:
        ordered = list(dict.fromkeys(labels))
        known = set(ordered)
        unknown = sorted({str(v) for v in np.concatenate([pred_arr, obs_arr]) if v not in known})
        if unknown:
            raise UnknownLabel(f"labels {unknown} are not in the label set {ordered}")
        return ordered

    for source in (observed, predicted):
        dtype = getattr(source, "dtype", None)
        if isinstance(dtype, pd.CategoricalDtype):
            ordered = list(dtype.categories)
            known = set(ordered)
            if all(v in known for v in np.concatenate([pred_arr, obs_arr])):
                return ordered

    seen = set(pred_arr.tolist()) | set(obs_arr.tolist())
    try:
        return sorted(seen)
    except TypeError:
        return sorted(seen, key=str)


def evaluate(
    predicted_labels: ArrayLike | Sequence[Any],
    observed_labels: ArrayLike | Sequence[Any],
    labels: Sequence[Hashable] | None = None,
) -> EvaluationResult:
    """
    Compare predictions with observations.

    Args:
        predicted_labels: Labels produced by a fitted classifier.
        observed_labels: True labels, positionally aligned with the predictions.
        labels: Optional explicit label order for the confusion matrix. Without
            it, the categories of a pandas categorical input are used, else the
            sorted union of both sequences.

    Returns:
        EvaluationResult: accuracy, counts and row proportions.

    Raises:
        LengthMismatch: If the sequences differ in length.
        EmptyInput: If both sequences are empty.
        UnknownLabel: If a value is missing from the explicit `labels`.
        EvaluationError: If either input is a scalar or has more than one column.

    Examples:
        >>> res = evaluate(["A"] * 4, ["A", "B", "A", "A"])
        >>> res.accuracy
        0.75
        >>> int(res.counts.loc["B", "A"])
        1
    """
    pred = _as_1d(predicted_labels, "predicted")
    obs = _as_1d(observed_labels, "observed")

    if pred.shape[0] != obs.shape[0]:
        raise LengthMismatch(
            f"predicted has {pred.shape[0]} labels but observed has {obs.shape[0]}"
        )
    n = int(obs.shape[0])
    if n == 0:
        raise EmptyInput("cannot evaluate empty label sequences")

    order = _resolve_labels(predicted_labels, observed_labels, pred, obs, labels)
    position = {lab: i for i, lab in enumerate(order)}

    matrix = np.zeros((len(order), len(order)), dtype=np.int64)
    for o, p in zip(obs, pred):
        matrix[position[o], position[p]] += 1

    accuracy = float(np.trace(matrix)) / n

    row_totals = matrix.sum(axis=1, keepdims=True)
    with np.errstate(divide="ignore", invalid="ignore"):
        props = np.where(row_totals > 0, matrix / np.maximum(row_totals, 1), 0.0)

    index = pd.Index(order, name="observed")
    columns = pd.Index(order, name="predicted")
    counts = pd.DataFrame(matrix, index=index, columns=columns)
    proportions = pd.DataFrame(props, index=index.copy(), columns=columns.copy())

    return EvaluationResult(
        accuracy=accuracy,
        n=n,
        labels=tuple(order),
        counts=counts,
        proportions=proportions,
    )
