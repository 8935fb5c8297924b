from __future__ import annotations
import argparse, json
from pathlib import Path

from penguinlab.config import load_and_merge, resolve_config
from penguinlab.core import ExperimentRunner
from penguinlab.log import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="penguinlab",
        description="Split the penguin table, fit the configured classifiers and score them.",
    )
    p.add_argument("--config", action="append", required=True, type=Path,
                   help="YAML config; repeat to overlay files (later wins)")
    p.add_argument("--output-dir", default=None, help="override output_dir from the config")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    raw = load_and_merge(args.config)
    if args.output_dir is not None:
        raw["output_dir"] = args.output_dir
    cfg = resolve_config(raw)
    logger.info("Running '%s' with seeds %s", cfg.cfg["exp_name"], cfg.seeds)

    summary = ExperimentRunner(cfg).run()
    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
