from __future__ import annotations

import logging
from dataclasses import dataclass, field
from importlib import import_module
from typing import Any, Hashable, Literal

import numpy as np
import pandas as pd
from numpy.typing import NDArray
from sklearn.base import BaseEstimator, clone

from .errors import InvalidConfiguration
from .splitter import Partition

logger = logging.getLogger(__name__)

OutputScale = Literal["label", "probability", "decision"]
OUTPUT_SCALES: tuple[str, ...] = ("label", "probability", "decision")
DEFAULT_THRESHOLDS: dict[str, float] = {"probability": 0.5, "decision": 0.0}


# ---------------------------------------------------------------------
# Estimator construction (config-friendly)
# ---------------------------------------------------------------------

def _import_object(dotted: str) -> Any:
    """
    Import an object given its dotted path (e.g. ``package.module.ClassName``).

    Raises:
        ValueError: If the dotted path does not contain a dot.
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist in the module.

    Examples:
        >>> _import_object("math.sqrt")
        <built-in function sqrt>
    """
    if "." not in dotted:
        raise ValueError(f"Invalid dotted path '{dotted}'; must contain a '.'")
    module_name, attr_name = dotted.rsplit(".", 1)
    return getattr(import_module(module_name), attr_name)


def _make_estimator(spec: Any) -> Any:
    """
    Accepts:
      - a ready sklearn estimator instance (returned as is)
      - {"class": "sklearn.linear_model.LogisticRegression", "params": {...}}

    Raises:
        TypeError: If ``spec`` is neither, or the params do not match the
            constructor.
        ModuleNotFoundError / AttributeError: If the class cannot be imported.

    Examples:
        >>> spec = {
        ...     "class": "sklearn.discriminant_analysis.LinearDiscriminantAnalysis",
        ...     "params": {"solver": "svd"}
        ... }
        >>> _make_estimator(spec)
        LinearDiscriminantAnalysis()
    """
    if isinstance(spec, BaseEstimator):
        return spec
    if not (isinstance(spec, dict) and "class" in spec):
        raise TypeError(f"Unsupported estimator spec: {spec!r}")
    cls = _import_object(spec["class"])
    return cls(**dict(spec.get("params") or {}))


def _label_for(spec: Any) -> str:
    """Short class name for an estimator spec or instance ('model' if unknown)."""
    if isinstance(spec, dict) and "class" in spec:
        cls_path = spec["class"]
        if not isinstance(cls_path, str):
            raise TypeError(f"Expected string for 'class', got {type(cls_path).__name__}")
        return cls_path.split(".")[-1]
    if isinstance(spec, BaseEstimator):
        return type(spec).__name__
    return "model"


# ---------------------------------------------------------------------
# Model specification
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class ModelSpec:
    """
    What to fit and how to read its output.

    Attributes:
        name: Identifier used in results.
        target: Column holding the labels.
        features: Columns used as predictors. Categorical columns are one-hot
            encoded against their fixed categories (first level dropped).
        estimator: Estimator spec dict or sklearn estimator instance.
        output_scale: How ``predict`` turns model output into labels:
            ``"label"`` uses ``estimator.predict``; ``"probability"`` compares
            ``predict_proba`` of the positive class with `threshold`;
            ``"decision"`` compares ``decision_function`` (the linear
            predictor) with `threshold`. There is no default on purpose.
        threshold: Cut-off for the two threshold scales (defaults: 0.5 for
            probability, 0.0 for decision). Ignored for ``"label"``.
        positive_label: Class on the high side of the cut-off. Defaults to the
            second category of an ordered target dtype (``"male"`` for sex).
    """
    name: str
    target: str
    features: tuple[str, ...]
    estimator: Any
    output_scale: OutputScale
    threshold: float | None = None
    positive_label: Hashable | None = None
    estimator_label: str = field(init=False)

    def __post_init__(self) -> None:
        if self.output_scale not in OUTPUT_SCALES:
            raise InvalidConfiguration(
                f"model '{self.name}': output_scale must be one of {list(OUTPUT_SCALES)}; "
                f"got {self.output_scale!r}"
            )
        if not self.features:
            raise InvalidConfiguration(f"model '{self.name}': features must be non-empty")
        if self.target in self.features:
            raise InvalidConfiguration(f"model '{self.name}': target '{self.target}' is also a feature")
        object.__setattr__(self, "features", tuple(self.features))
        object.__setattr__(self, "estimator_label", _label_for(self.estimator))

    @property
    def effective_threshold(self) -> float | None:
        if self.output_scale == "label":
            return None
        return DEFAULT_THRESHOLDS[self.output_scale] if self.threshold is None else float(self.threshold)


# ---------------------------------------------------------------------
# Training / inference API
# ---------------------------------------------------------------------

def _records(data: Partition | pd.DataFrame) -> pd.DataFrame:
    return data.records if isinstance(data, Partition) else data


def _design_matrix(frame: pd.DataFrame, features: tuple[str, ...], model_name: str) -> NDArray[np.float64]:
    """Numeric features as is, categorical ones one-hot against their declared categories."""
    missing = [c for c in features if c not in frame.columns]
    if missing:
        raise InvalidConfiguration(f"model '{model_name}': unknown feature columns {missing}")

    blocks: list[pd.DataFrame] = []
    for col in features:
        series = frame[col]
        if isinstance(series.dtype, pd.CategoricalDtype):
            blocks.append(pd.get_dummies(series, prefix=col, drop_first=True, dtype=float))
        elif pd.api.types.is_numeric_dtype(series.dtype) and not pd.api.types.is_bool_dtype(series.dtype):
            blocks.append(series.astype(float).to_frame())
        else:
            # plain object columns would encode differently per partition
            raise InvalidConfiguration(
                f"model '{model_name}': feature '{col}' must be numeric or categorical; got {series.dtype}"
            )
    return pd.concat(blocks, axis=1).to_numpy(dtype=np.float64)


@dataclass(frozen=True)
class FittedClassifier:
    """Fitted estimator plus the rule that maps its output onto labels."""
    spec: ModelSpec
    estimator: Any
    classes: tuple[Hashable, ...]
    positive_label: Hashable | None = None
    negative_label: Hashable | None = None

    def scores(self, data: Partition | pd.DataFrame) -> NDArray[np.float64]:
        """Raw positive-class score on the model's declared scale (threshold scales only)."""
        X = _design_matrix(_records(data), self.spec.features, self.spec.name)
        if self.spec.output_scale == "probability":
            col = list(self.classes).index(self.positive_label)
            return np.asarray(self.estimator.predict_proba(X), dtype=np.float64)[:, col]
        if self.spec.output_scale == "decision":
            raw = np.asarray(self.estimator.decision_function(X), dtype=np.float64).reshape(-1)
            # sklearn scores binary decision functions towards classes_[1]
            return raw if self.positive_label == self.classes[1] else -raw
        raise InvalidConfiguration(f"model '{self.spec.name}' predicts labels directly; no scores")

    def predict(self, data: Partition | pd.DataFrame) -> NDArray[Any]:
        """Labels aligned row by row with `data`."""
        if self.spec.output_scale == "label":
            X = _design_matrix(_records(data), self.spec.features, self.spec.name)
            return np.asarray(self.estimator.predict(X), dtype=object)
        s = self.scores(data)
        return np.where(s > self.spec.effective_threshold, self.positive_label, self.negative_label).astype(object)


def fit_classifier(train: Partition | pd.DataFrame, spec: ModelSpec) -> FittedClassifier:
    """
    Fit a fresh clone of ``spec.estimator`` on `train`.

    Raises:
        InvalidConfiguration: If the target column is missing, a feature is
            unusable, or a threshold scale is used with a non-binary target or
            an unknown positive label.
    """
    frame = _records(train)
    if spec.target not in frame.columns:
        raise InvalidConfiguration(f"model '{spec.name}': unknown target column '{spec.target}'")

    X = _design_matrix(frame, spec.features, spec.name)
    y_series = frame[spec.target]
    y = y_series.to_numpy(dtype=object)

    est = clone(_make_estimator(spec.estimator))
    est.fit(X, y)
    classes = tuple(getattr(est, "classes_", np.unique(y)).tolist())
    logger.info(
        "Fitted %s (%s) on %d records, %d features",
        spec.name, spec.estimator_label, X.shape[0], X.shape[1],
    )

    if spec.output_scale == "label":
        return FittedClassifier(spec=spec, estimator=est, classes=classes)

    if len(classes) != 2:
        raise InvalidConfiguration(
            f"model '{spec.name}': output_scale '{spec.output_scale}' needs a binary target; "
            f"got classes {list(classes)}"
        )
    positive = spec.positive_label
    if positive is None:
        dtype = y_series.dtype
        if isinstance(dtype, pd.CategoricalDtype) and len(dtype.categories) == 2:
            positive = dtype.categories[1]
        else:
            positive = classes[1]
    if positive not in classes:
        raise InvalidConfiguration(
            f"model '{spec.name}': positive_label {positive!r} not among classes {list(classes)}"
        )
    negative = classes[0] if positive == classes[1] else classes[1]
    return FittedClassifier(
        spec=spec, estimator=est, classes=classes,
        positive_label=positive, negative_label=negative,
    )
