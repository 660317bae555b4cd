"""Pacote core: parsing de argumentos da linha de comando.

Re-exports para ``from traffic_exporter.core import parse_args``.
"""

from .args import get_log_config, parse_args

__all__ = ["get_log_config", "parse_args"]
