"""
Configuration utilities for penguinlab

Provides functions to load, merge, validate and resolve YAML configurations
for split/fit/evaluate experiments. Used by the experiment runner to parse
settings from files like `configs/penguins.yaml`.
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import datetime as dt
import math
import yaml

from .errors import InvalidConfiguration
from .model import OUTPUT_SCALES, ModelSpec, _import_object, _make_estimator  # noqa: F401
from .splitter import MAX_PARTITIONS, PARTITION_NAMES, EPSILON


#########
# Helpers
#########

def _load_yaml(path: str | Path) -> dict[str, Any]:
    """
    Load a YAML file into a dictionary.

    Args:
        path (str | Path): Path to the YAML file.
        It must exist, be readable and contain a YAML mapping.

    Returns:
        dict[str, Any]: Parsed YAML content as a dictionary.
        Returns an empty dictionary if the file is empty.

    Raises:
        FileNotFoundError: If the file does not exist.
        PermissionError: If the file cannot be read.
        IsADirectoryError: If `path` is a directory.
        yaml.YAMLError: If the file contains invalid YAML.
        TypeError: If the YAML content is valid but not a mapping.
    """
    txt = Path(path).read_text(encoding="utf-8")
    data = yaml.safe_load(txt)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TypeError(f"Expected a mapping, got {type(data).__name__}")
    return data

def _deep_update(
        base: dict[str, Any],
        override: dict[str, Any]
) -> dict[str, Any]:
    """
    Merge two dictionaries recursively.

    Keys present in 'override' replace those in 'base' unless both values are
    mappings, in which case they are merged recursively. Lists are replaced,
    not concatenated. Inputs are not mutated.

    Examples:
        >>> _deep_update({"a": {"x": 1}}, {"a": {"y": 2}, "b": 3})
        {'a': {'x': 1, 'y': 2}, 'b': 3}
        >>> _deep_update({"a": {"x": 1}}, {"a": 7})
        {'a': 7}
    """
    result: dict[str, Any] = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_update(result[k], v)
        else:
            result[k] = v
    return result

def load_and_merge(paths: Sequence[str | Path]) -> dict[str, Any]:
    """
    Load multiple YAML files and deep-merge them.

    Args:
        paths: File paths. Order matters: later paths override earlier.

    Returns:
        A new dictionary with the merged configuration; {} if `paths` is empty.
    """
    cfg: dict[str, Any] = {}
    for p in paths:
        cfg = _deep_update(cfg, _load_yaml(p))
    return cfg

def _substitute_placeholders(s: str, vars: dict[str, str]) -> str:
    """
    Substitute placeholders of the form `${var}` in a string by its value.

    Raises:
        AttributeError: If `vars` is not a mapping.
        TypeError: If a replacement is not a string.

    Example:
        >>> _substitute_placeholders("runs/${exp_name}", {"exp_name": "penguins"})
        'runs/penguins'
    """
    for key, value in vars.items():
        s = s.replace(f"${{{key}}}", value)
    return s

def _expand_seeds(cfg: dict[str, Any]) -> list[int]:
    """
    Expand a random seed configuration into a list of integer seeds.

    Example YAML:
        random_seed:
            base: 100       # optional, defaults to 0
            iterations: 3   # optional, defaults to 1

    Raises:
        KeyError: If ``"random_seed"`` is missing from ``cfg``.
        TypeError: If ``base`` or ``iterations`` are not integers or ``None``.

    Examples:
        >>> _expand_seeds({"random_seed": {"base": 100, "iterations": 3}})
        [100, 101, 102]
        >>> _expand_seeds({"random_seed": {"iterations": 3}})
        [0, 1, 2]
        >>> _expand_seeds({"random_seed": {}})
        [0]
    """
    if "random_seed" not in cfg:
        raise KeyError("Missing 'random_seed' in configuration")

    seed_cfg = cfg["random_seed"]
    base = seed_cfg.get("base")
    iterations = seed_cfg.get("iterations")

    if base is not None and not isinstance(base, int):
        raise TypeError(f"Expected int or None for base, got {type(base).__name__}")
    if iterations is not None and not isinstance(iterations, int):
        raise TypeError(f"Expected int or None for iterations, got {type(iterations).__name__}")

    start = 0 if base is None else base
    count = 1 if iterations is None else iterations
    return list(range(start, start + count))

#########
# Validation
#########

REQUIRED_KEYS = ["dataset", "data", "models", "output_dir", "exp_name", "random_seed"]
MODEL_KEYS = {"name", "target", "features", "estimator", "output_scale", "threshold", "positive_label"}

def _validate_config(cfg: dict[str, Any]) -> None:
    """
    Validate a merged YAML configuration.

    Raises:
        InvalidConfiguration: If any section/key is missing or malformed.
    """
    _require_keys(cfg, REQUIRED_KEYS)

    _validate_dataset(cfg["dataset"])
    _validate_data(cfg["data"])
    _validate_models(cfg["models"])
    _validate_paths(cfg["output_dir"])
    _validate_exp(cfg["exp_name"])
    _validate_random_seed(cfg["random_seed"])
    return None

# ----- validation helpers

def _require_keys(mapping: dict[str, Any], keys: Sequence[str]) -> None:
    """
    Ensure that all required keys are present in a dictionary.

    Examples:
        >>> _require_keys({"a": 1, "b": 2}, ["a", "c"])
        Traceback (most recent call last):
            ...
        penguinlab.errors.InvalidConfiguration: Missing required config section/key: 'c'
    """
    for key in keys:
        if key not in mapping:
            raise InvalidConfiguration(f"Missing required config section/key: '{key}'")
    return None

def _ensure_type(value: Any, expected_type: type[Any] | tuple[type[Any], ...], context: str) -> None:
    """
    Ensure that a value has the expected type.

    Examples:
        >>> _ensure_type("abc", int, "random_seed.base")
        Traceback (most recent call last):
            ...
        penguinlab.errors.InvalidConfiguration: random_seed.base must be int; got str
    """
    if not isinstance(value, expected_type):
        names = (
            " | ".join(t.__name__ for t in expected_type)
            if isinstance(expected_type, tuple) else expected_type.__name__
        )
        raise InvalidConfiguration(f"{context} must be {names}; got {type(value).__name__}")
    return None

def _ensure_one_of(value: Any, allowed: Sequence[Any], context: str) -> None:
    """Ensure that a value belongs to an allowed set."""
    if value not in allowed:
        raise InvalidConfiguration(f"{context} must be one of {list(allowed)}; got {value!r}")
    return None

def _validate_estimator_spec(spec: dict[str, Any], context: str) -> None:
    """
    Validate an estimator specification mapping.

    Expected shape:
      - ``class`` (str, required): fully qualified dotted path to the class.
      - ``params`` (dict[str, Any] | None, optional): kwargs for the constructor.

    Examples:
        >>> _validate_estimator_spec(
        ...     {"class": "sklearn.linear_model.LogisticRegression",
        ...      "params": {"max_iter": 1000}},
        ...     "models[1].estimator"
        ... )
    """
    _ensure_type(spec, dict, context)
    _require_keys(spec, ["class"])
    _ensure_type(spec["class"], str, f"{context}.class")

    params = spec.get("params", None)
    if params is not None and not isinstance(params, dict):
        raise InvalidConfiguration(f"{context}.params must be a mapping or None; got {type(params).__name__}")

    # Guard against typos
    unknown = set(spec.keys()) - {"class", "params"}
    if unknown:
        raise InvalidConfiguration(f"{context} has unknown keys: {sorted(unknown)}")
    return None

def _validate_dataset(dataset: dict[str, Any]) -> None:
    """
    Validate the dataset block.

    Expected schema:
      - ``name`` (str, required): Registered dataset identifier.
      - ``params`` (Mapping[str, Any], required): Loader kwargs, for the
        penguins loader ``path`` (str, required) and ``drop_incomplete``.

    Examples:
        >>> _validate_dataset({"name": "penguins", "params": {"path": "data/penguins.csv"}})
    """
    _ensure_type(dataset, dict, "dataset")
    _require_keys(dataset, ["name", "params"])
    _ensure_type(dataset["name"], str, "dataset.name")
    _ensure_type(dataset["params"], dict, "dataset.params")

    params = dataset["params"]
    _require_keys(params, ["path"])
    _ensure_type(params["path"], str, "dataset.params.path")
    return None

def _validate_data(data: dict[str, Any]) -> None:
    """
    Validate the partitioning block.

    Expected schema:
      - ``proportions`` (list[float], required): 1..3 fractions in (0, 1]
        summing to <= 1; a shortfall becomes one more partition. Partitions are
        named train, validation, test in order, and at least two are needed.
      - ``complete_cases`` (bool, optional, default true): Drop records with
        missing values before splitting.

    Examples:
        >>> _validate_data({"proportions": [0.6, 0.2, 0.2], "complete_cases": True})
        >>> _validate_data({"proportions": [0.5, 0.6]})
        Traceback (most recent call last):
            ...
        penguinlab.errors.InvalidConfiguration: data.proportions must sum to <= 1; got 1.1
    """
    _ensure_type(data, dict, "data")
    _require_keys(data, ["proportions"])
    props = data["proportions"]
    _ensure_type(props, list, "data.proportions")
    if not 1 <= len(props) <= MAX_PARTITIONS:
        raise InvalidConfiguration(f"data.proportions must hold 1..{MAX_PARTITIONS} fractions; got {len(props)}")
    for i, p in enumerate(props):
        if isinstance(p, bool) or not isinstance(p, (int, float)):
            raise InvalidConfiguration(f"data.proportions[{i}] must be a number; got {type(p).__name__}")
        if not 0.0 < float(p) <= 1.0:
            raise InvalidConfiguration(f"data.proportions[{i}] must be in (0, 1]; got {p!r}")

    total = math.fsum(float(p) for p in props)
    if total > 1.0 + EPSILON:
        raise InvalidConfiguration(f"data.proportions must sum to <= 1; got {total:g}")
    n_parts = len(props) + (1 if total < 1.0 - EPSILON else 0)
    if n_parts < 2:
        raise InvalidConfiguration("data.proportions must leave at least one partition to evaluate on")
    if n_parts > len(PARTITION_NAMES):
        raise InvalidConfiguration(
            f"data.proportions yield {n_parts} partitions; at most {len(PARTITION_NAMES)} are supported"
        )

    if "complete_cases" in data:
        _ensure_type(data["complete_cases"], bool, "data.complete_cases")
    return None

def _validate_models(models: list[Any]) -> None:
    """
    Validate the list of models to fit.

    Each entry needs ``name`` (unique str), ``target`` (str), ``features``
    (non-empty list[str]), ``estimator`` (estimator spec) and ``output_scale``
    (one of label / probability / decision). ``threshold`` (number) and
    ``positive_label`` (str) are optional.
    """
    _ensure_type(models, list, "models")
    if not models:
        raise InvalidConfiguration("models must be a non-empty list")

    seen: set[str] = set()
    for i, m in enumerate(models):
        ctx = f"models[{i}]"
        _ensure_type(m, dict, ctx)
        _require_keys(m, ["name", "target", "features", "estimator", "output_scale"])
        unknown = set(m) - MODEL_KEYS
        if unknown:
            raise InvalidConfiguration(f"{ctx} has unknown keys: {sorted(unknown)}")

        _ensure_type(m["name"], str, f"{ctx}.name")
        if not m["name"] or m["name"] in seen:
            raise InvalidConfiguration(f"{ctx}.name must be a unique non-empty string; got {m['name']!r}")
        seen.add(m["name"])

        _ensure_type(m["target"], str, f"{ctx}.target")
        _ensure_type(m["features"], list, f"{ctx}.features")
        if not m["features"]:
            raise InvalidConfiguration(f"{ctx}.features must be a non-empty list")
        for j, f in enumerate(m["features"]):
            _ensure_type(f, str, f"{ctx}.features[{j}]")

        _validate_estimator_spec(m["estimator"], f"{ctx}.estimator")
        _ensure_one_of(m["output_scale"], OUTPUT_SCALES, f"{ctx}.output_scale")

        threshold = m.get("threshold")
        if threshold is not None and (isinstance(threshold, bool) or not isinstance(threshold, (int, float))):
            raise InvalidConfiguration(f"{ctx}.threshold must be a number or null")
        if m.get("positive_label") is not None:
            _ensure_type(m["positive_label"], str, f"{ctx}.positive_label")
    return None

def _validate_paths(output_dir: Any) -> None:
    """Output directory must be a string; no filesystem checks are performed."""
    _ensure_type(output_dir, str, "output_dir")
    return None

def _validate_exp(exp_name: Any) -> None:
    """Experiment name must be a non-empty string."""
    _ensure_type(exp_name, str, "exp_name")
    if not exp_name:
        raise InvalidConfiguration("exp_name must be a non-empty string")
    return None

def _validate_random_seed(seed_cfg: dict[str, Any]) -> None:
    """
    Validate the random seed block.

    Expected schema:
      - ``base`` (int | None, optional): Starting seed; missing or null means 0.
      - ``iterations`` (int | None, optional): Number of sequential seeds, >= 1;
        missing or null means 1.

    Same defaults as :func:`_expand_seeds`.
    """
    _ensure_type(seed_cfg, dict, "random_seed")

    base = seed_cfg.get("base")
    iterations = seed_cfg.get("iterations")

    if base is not None and (isinstance(base, bool) or not isinstance(base, int)):
        raise InvalidConfiguration("random_seed.base must be int or null")
    if iterations is not None and (isinstance(iterations, bool) or not isinstance(iterations, int)):
        raise InvalidConfiguration("random_seed.iterations must be int or null")
    if isinstance(iterations, int) and iterations < 1:
        raise InvalidConfiguration("random_seed.iterations must be >= 1")
    return None

@dataclass
class ExperimentConfig:
    """
    Container for fully resolved experiment settings.

    Attributes:
        cfg: Full (validated) configuration dictionary.
        seeds: Expanded list of random seeds, one split per seed.
        dataset_name: Registered dataset identifier.
        dataset_params: Keyword arguments for the dataset loader.
        proportions: Split ratios.
        complete_cases: Whether incomplete records are dropped before splitting.
        models: Models to fit on ``train`` and score on the other partitions.
        output_dir: Destination directory for artifacts.
    """
    cfg: dict[str, Any]
    seeds: list[int]
    dataset_name: str
    dataset_params: dict[str, Any]
    proportions: list[float]
    complete_cases: bool
    models: list[ModelSpec]
    output_dir: Path

def resolve_config(raw_cfg: dict[str, Any]) -> ExperimentConfig:
    """
    Resolve a raw configuration into a structured `ExperimentConfig`.

    Steps:
      1) Validate the raw configuration.
      2) Expand `random_seed` into a concrete list of integers.
      3) Substitute placeholders in the output path (`${exp_name}`, `${now}`).
      4) Instantiate the model specs (estimators are built eagerly so that a
         bad class path fails here rather than mid-run).

    Raises:
        InvalidConfiguration: For invalid configuration (via validators).
        ModuleNotFoundError / AttributeError / TypeError: For estimator specs
            that cannot be instantiated.
    """
    # 1) Validate & normalize
    _validate_config(raw_cfg)
    cfg: dict[str, Any] = dict(raw_cfg)  # shallow copy

    # 2) Seeds
    seeds = _expand_seeds(cfg)

    # 3) Paths with placeholders
    now = dt.datetime.now().strftime("%Y%m%d_%H%M%S")
    vars_map: dict[str, str] = {"exp_name": cfg["exp_name"], "now": now}
    output_dir = Path(_substitute_placeholders(cfg["output_dir"], vars_map))

    # 4) Models
    models = [
        ModelSpec(
            name=m["name"],
            target=m["target"],
            features=tuple(m["features"]),
            estimator=_make_estimator(m["estimator"]),
            output_scale=m["output_scale"],
            threshold=m.get("threshold"),
            positive_label=m.get("positive_label"),
        )
        for m in cfg["models"]
    ]

    data = cfg["data"]
    return ExperimentConfig(
        cfg=cfg,
        seeds=seeds,
        dataset_name=cfg["dataset"]["name"],
        dataset_params=dict(cfg["dataset"]["params"]),
        proportions=[float(p) for p in data["proportions"]],
        complete_cases=bool(data.get("complete_cases", True)),
        models=models,
        output_dir=output_dir,
    )

def load_config(paths: Sequence[str | Path]) -> ExperimentConfig:
    """Load, merge and resolve one or more YAML files."""
    return resolve_config(load_and_merge(paths))
