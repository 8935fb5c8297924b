# generic ExperimentRunner
#
# src/penguinlab/core.py
from __future__ import annotations
import json, logging
from pathlib import Path
from typing import Any

import pandas as pd
import yaml

from .config import ExperimentConfig
from .datasets import penguins  # noqa: F401  (registers "penguins")
from .datasets.base import complete_cases
from .errors import InvalidConfiguration
from .evaluation import evaluate
from .model import fit_classifier
from .registry import create_dataset
from .splitter import split_dataset

logger = logging.getLogger(__name__)


class ExperimentRunner:
    def __init__(self, cfg: ExperimentConfig):
        self.cfg = cfg

    def _load(self) -> pd.DataFrame:
        ds = create_dataset(self.cfg.dataset_name, **self.cfg.dataset_params)
        df = ds.load()
        if self.cfg.complete_cases:
            n_before = len(df)
            df = complete_cases(df)
            logger.info("Kept %d of %d records (complete cases)", len(df), n_before)
        return df

    def run_seed(self, df: pd.DataFrame, seed: int) -> list[dict[str, Any]]:
        """Split once with `seed`, fit every model on train, score on the rest."""
        parts = split_dataset(df, self.cfg.proportions, seed=seed)
        empty = [name for name, part in parts.items() if len(part) == 0]
        if empty:
            raise InvalidConfiguration(
                f"{len(df)} records are too few for {len(parts)} partitions; empty: {empty}"
            )
        train = parts["train"]

        results: list[dict[str, Any]] = []
        for spec in self.cfg.models:
            fitted = fit_classifier(train, spec)
            labels = list(df[spec.target].cat.categories) \
                if isinstance(df[spec.target].dtype, pd.CategoricalDtype) else None
            for name, part in parts.items():
                if name == "train":
                    continue
                res = evaluate(fitted.predict(part), part.records[spec.target], labels=labels)
                logger.info("seed=%s model=%s %s accuracy=%.4f (n=%d)",
                            seed, spec.name, name, res.accuracy, res.n)
                results.append({
                    "seed": seed,
                    "model": spec.name,
                    "estimator": spec.estimator_label,
                    "partition": name,
                    "n_train": len(train),
                    **res.to_dict(),
                })
        return results

    def run(self) -> dict:
        df = self._load()

        results: list[dict[str, Any]] = []
        for seed in self.cfg.seeds:
            results.extend(self.run_seed(df, seed))

        out_dir = Path(self.cfg.output_dir).expanduser()
        out_dir.mkdir(parents=True, exist_ok=True)
        (out_dir / "results.json").write_text(json.dumps(results, indent=2))
        (out_dir / "config_used.yaml").write_text(yaml.safe_dump(self.cfg.cfg, sort_keys=False))  # keep the exact cfg
        logger.info("Wrote %d results to %s", len(results), out_dir)
        return {"n_runs": len(results), "out": str(out_dir)}
