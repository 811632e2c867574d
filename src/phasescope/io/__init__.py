"""Snapshot serialization."""

from phasescope.io.exporter import ManifestExporter

__all__ = ["ManifestExporter"]
