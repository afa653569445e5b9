"""Dataset builder: assemble the model-ready bicycle count table.

Run from repo root:
  uv run python scripts/phases/build_dataset.py
  uv run python scripts/phases/build_dataset.py --reduce extract --components 4 --fit linear random_forest

Outputs:
- data/processed/model_table.csv
- data/processed/model_table_<select|extract>.csv   (with --reduce)
- data/processed/_meta/assembly_summary.json
- data/processed/_meta/model_metrics.json           (with --fit)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

import pandas as pd

# Ensure repo root is on sys.path so `import bikefusion...` works when executing this file directly.
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from bikefusion.core.cli_utils import add_model_flags, create_base_parser
from bikefusion.core.config import configure_logging, get_paths
from bikefusion.core.errors import PipelineError
from bikefusion.core.pipeline_config import PipelineConfig, load_pipeline_config
from bikefusion.data_processing.pipeline import run_pipeline
from bikefusion.features.estimators import MODEL_REGISTRY, fit_models
from bikefusion.features.reduce import elastic_net_coefficients, extract_components, select_features
from bikefusion.io import sha256_file, write_json, write_table

LOGGER = logging.getLogger("dataset_builder")

MODEL_TABLE_FILE = "model_table.csv"
SUMMARY_FILE = "assembly_summary.json"
METRICS_FILE = "model_metrics.json"
DEFAULT_CONFIG_FILE = "pipeline_config.yaml"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = create_base_parser("Assemble the model-ready bicycle count table.")
    add_model_flags(parser)
    return parser.parse_args(argv)


def _reduce(df: pd.DataFrame, mode: str, *, config: PipelineConfig, n_components: int) -> pd.DataFrame:
    if mode == "select":
        coefs = elastic_net_coefficients(df, target=config.target)
        return select_features(df, target=config.target, coefficients=coefs)
    return extract_components(df, target=config.target, n_components=n_components)


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = _parse_args(argv)
    paths = get_paths()

    config_path = Path(args.config) if args.config else paths.config / DEFAULT_CONFIG_FILE
    data_dir = Path(args.data_dir) if args.data_dir else paths.data_raw
    out_dir = Path(args.out_dir) if args.out_dir else paths.data_processed
    meta_dir = out_dir / "_meta"

    unknown = [m for m in args.fit if m not in MODEL_REGISTRY]
    if unknown:
        LOGGER.error("Unknown model(s) %s; choose from %s", unknown, sorted(MODEL_REGISTRY))
        return 2

    try:
        config = load_pipeline_config(config_path if config_path.exists() else None)
        result = run_pipeline(data_dir, config)
        summary: dict[str, Any] = {"completed_steps": ["assemble"], "assembly": result.summary}

        outputs: list[Path] = [out_dir / MODEL_TABLE_FILE]
        write_table(result.table, outputs[0])

        table = result.table
        if args.reduce:
            table = _reduce(table, args.reduce, config=config, n_components=args.components)
            reduced_path = out_dir / f"model_table_{args.reduce}.csv"
            write_table(table, reduced_path)
            outputs.append(reduced_path)
            summary["reduced_columns"] = list(table.columns)
            summary["completed_steps"].append(f"reduce_{args.reduce}")

        if args.fit:
            reports = fit_models(args.fit, table, target=config.target)
            metrics: dict[str, Any] = {r.name: r.metrics for r in reports}
            write_json(metrics, meta_dir / METRICS_FILE)
            outputs.append(meta_dir / METRICS_FILE)
            summary["models"] = metrics
            summary["completed_steps"].append("fit")
    except PipelineError as exc:
        LOGGER.error("Pipeline aborted at stage '%s': %s", exc.stage, exc)
        return 1

    write_json(summary, meta_dir / SUMMARY_FILE)
    outputs.append(meta_dir / SUMMARY_FILE)

    if args.checkpoint:
        for p in outputs:
            print(f"{p.relative_to(out_dir)}  sha256={sha256_file(p)}")

    LOGGER.info("Wrote %d output file(s) to %s", len(outputs), out_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
