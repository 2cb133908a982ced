"""Exporters package for the telemetry record."""

from .base_exporter import BaseSink
from .csv_exporter import CSVTelemetrySink

__all__ = ["BaseSink", "CSVTelemetrySink"]
