"""Pacote exporter: coleta do Traffic Server e exposição Prometheus.

Re-exports para ``from traffic_exporter.exporter import TrafficExporter``.
"""

from .exporter import TrafficExporter
from .snapshot import ScrapeTarget, TrafficSnapshot, parse_snapshot

__all__ = ["TrafficExporter", "ScrapeTarget", "TrafficSnapshot", "parse_snapshot"]
