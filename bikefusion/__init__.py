"""Assemble a model-ready bicycle count table from sensor, sample and zone data."""

__version__ = "0.1.0"
