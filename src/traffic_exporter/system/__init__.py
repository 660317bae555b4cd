"""Pacote system: diretórios de log e helpers de I/O usados pelo logging."""

from .logs import get_debug_file_path, get_log_paths

__all__ = ["get_debug_file_path", "get_log_paths"]
