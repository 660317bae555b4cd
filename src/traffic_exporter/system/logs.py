"""Diretórios de log do exporter.

A raiz vem de ``--log-root`` / ``TRAFFIC_EXPORTER_LOG_ROOT`` (padrão ``logs``);
o arquivo de debug diário fica em ``<raiz>/debug``.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .log_helpers import ensure_dir_writable, format_date_for_log

logger = logging.getLogger(__name__)

LOG_ROOT_ENV = "TRAFFIC_EXPORTER_LOG_ROOT"
DEFAULT_LOG_ROOT = "logs"
DEBUG_LOG_FILENAME = "debug_log"


@dataclass(frozen=True)
class LogPaths:
    """Agrupa caminhos usados pelo subsistema de logging."""

    root: Path
    debug_dir: Path


def get_log_paths(root: str | Path | None = None) -> LogPaths:
    """Resolve raiz de logs e garante diretórios criados e graváveis.

    Prioridade: argumento ``root``, depois ``TRAFFIC_EXPORTER_LOG_ROOT``,
    depois ``logs`` relativo ao diretório corrente.
    """
    env_root = os.getenv(LOG_ROOT_ENV)
    candidate = root if root else (env_root.strip() if env_root and env_root.strip() else DEFAULT_LOG_ROOT)
    log_root = Path(candidate)

    ensure_dir_writable(log_root)
    debug_dir = log_root / "debug"
    ensure_dir_writable(debug_dir)
    return LogPaths(log_root, debug_dir)


def get_debug_file_path(root: str | Path | None = None) -> Path:
    """Retorna caminho do arquivo de debug diário.

    Nomeia o arquivo com a data atual no diretório de debug.
    """
    date_str = format_date_for_log(None)
    filename = f"{DEBUG_LOG_FILENAME}-{date_str}.txt"
    return get_log_paths(root).debug_dir / filename
