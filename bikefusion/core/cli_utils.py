"""Common CLI utilities for pipeline scripts."""

from __future__ import annotations

import argparse


def create_base_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "--config",
        default=None,
        help="Pipeline YAML config (default: config/pipeline_config.yaml).",
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Directory holding the raw source tables (default: data/raw).",
    )
    parser.add_argument(
        "--out-dir",
        default=None,
        help="Directory for the model-ready table (default: data/processed).",
    )
    parser.add_argument(
        "--checkpoint",
        action="store_true",
        help="Print checkpoint summary including output hashes.",
    )
    return parser


def add_model_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--reduce",
        choices=("select", "extract"),
        default=None,
        help="Feature reduction: elastic-net selection or PCA extraction.",
    )
    parser.add_argument(
        "--components",
        type=int,
        default=5,
        help="Number of principal components kept by --reduce extract.",
    )
    parser.add_argument(
        "--fit",
        nargs="+",
        default=[],
        metavar="MODEL",
        help="Fit one or more registered models on the (reduced) table.",
    )

