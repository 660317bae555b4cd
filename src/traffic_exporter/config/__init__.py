"""Pacote config: valores padrão e carregamento de configurações do exporter."""

from .settings import load_settings, parse_listen_address

__all__ = ["load_settings", "parse_listen_address"]
