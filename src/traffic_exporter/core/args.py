"""Parser de argumentos do exporter.

Este módulo fornece um parser que expõe:
- endereço e endpoint de telemetria (--telemetry.address / --telemetry.endpoint)
- URI do alvo (--scrape_uri) e verificação TLS (--insecure)
- versão (--version)
- verbosidade (-v) e opções de logging (nível e caminho raiz)

Valores podem vir de variáveis de ambiente ``TRAFFIC_EXPORTER_*`` quando o
argumento não foi passado na linha de comando (prioridade: CLI > ENV > default).
"""

import argparse
import logging
import os
from typing import Sequence
from urllib.parse import urlsplit

from .. import __version__
from ..config.settings import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_SCRAPE_URI,
    DEFAULT_TELEMETRY_ADDRESS,
    DEFAULT_TELEMETRY_ENDPOINT,
    ENV_PREFIX,
    parse_listen_address,
)

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")

# ========================
# 0. Configuração do parser e argumentos padrão
# ========================


def configure_argparser() -> argparse.ArgumentParser:
    """Cria e retorna ArgumentParser configurado para o exporter."""
    parser = argparse.ArgumentParser(
        prog="traffic_exporter",
        description="Exporter Prometheus para o status /_billing do Traffic Server",
    )

    parser.add_argument(
        "--telemetry.address",
        dest="telemetry_address",
        default=DEFAULT_TELEMETRY_ADDRESS,
        help="Endereço onde as métricas são expostas (host:porta).",
    )
    parser.add_argument(
        "--telemetry.endpoint",
        dest="telemetry_endpoint",
        default=DEFAULT_TELEMETRY_ENDPOINT,
        help="Caminho sob o qual as métricas são expostas.",
    )
    parser.add_argument(
        "--scrape_uri",
        dest="scrape_uri",
        default=DEFAULT_SCRAPE_URI,
        help="URI da página de status /_billing do Traffic Server.",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        default=False,
        help="Ignora o certificado do servidor ao usar https.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"traffic_exporter {__version__}",
        help="Mostra a versão e sai.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Aumenta a verbosidade (-v, -vv)",
    )
    parser.add_argument(
        "--log-root",
        dest="log_root",
        type=str,
        default=None,
        help="Caminho raiz para os logs (substitui TRAFFIC_EXPORTER_LOG_ROOT)",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        type=str,
        default=None,
        help="Nível de logging (DEBUG/INFO/WARNING/ERROR). Se ausente, definido por -v",
    )

    return parser


# ========================
# 1. Funções auxiliares para análise e validação de argumentos
# ========================


def _to_bool(raw: str) -> bool:
    val = raw.strip().lower()
    if val in _TRUE_VALUES:
        return True
    if val in _FALSE_VALUES:
        return False
    raise ValueError("esperado booleano (1/0, true/false, yes/no)")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Analisa argv e retorna Namespace validado para uso no programa."""
    parser = configure_argparser()
    ns = parser.parse_args(argv)
    env_map = {
        "telemetry_address": f"{ENV_PREFIX}TELEMETRY_ADDRESS",
        "telemetry_endpoint": f"{ENV_PREFIX}TELEMETRY_ENDPOINT",
        "scrape_uri": f"{ENV_PREFIX}SCRAPE_URI",
        "insecure": f"{ENV_PREFIX}INSECURE",
        "verbose": f"{ENV_PREFIX}VERBOSE",
        "log_root": f"{ENV_PREFIX}LOG_ROOT",
        "log_level": f"{ENV_PREFIX}LOG_LEVEL",
    }

    # Aplicar overrides via variáveis de ambiente SOMENTE quando o argumento
    # não foi fornecido pela linha de comando (CLI tem precedência).
    for arg, env_var in env_map.items():
        env_val = os.getenv(env_var)
        if env_val is None:
            continue
        default_val = parser.get_default(arg)
        current_val = getattr(ns, arg, None)
        if current_val is not None and current_val != default_val:
            continue
        try:
            if arg == "insecure":
                setattr(ns, arg, _to_bool(env_val))
            elif arg == "verbose":
                setattr(ns, arg, int(env_val))
            else:
                setattr(ns, arg, env_val)
        except ValueError as exc:
            logging.getLogger(__name__).warning(f"{env_var} inválido ('{env_val}'): {exc}. Usando valor do argumento.")
    validate_args(ns)
    return ns


def validate_args(args: argparse.Namespace) -> None:
    """Valida e normaliza argumentos do exporter.

    Acrescenta ``listen_host`` e ``listen_port`` ao namespace.
    """
    host, port = parse_listen_address(getattr(args, "telemetry_address", DEFAULT_TELEMETRY_ADDRESS))
    args.listen_host = host
    args.listen_port = port

    endpoint = getattr(args, "telemetry_endpoint", None) or ""
    if not endpoint.startswith("/"):
        raise ValueError("telemetry.endpoint deve começar com '/'")
    if endpoint == "/":
        raise ValueError("telemetry.endpoint não pode ser '/' (reservado para a página inicial)")

    uri = getattr(args, "scrape_uri", None) or ""
    parts = urlsplit(uri)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError(f"scrape_uri deve ser uma URL http(s) absoluta: {uri!r}")

    args.insecure = bool(getattr(args, "insecure", False))


# ========================
# 2. Função auxiliar para configuração de logging
# ========================


def get_log_config(args: argparse.Namespace) -> dict:
    """Retorna dict com configuração de logging ('level' e 'root')."""
    if getattr(args, "log_level", None):
        level = str(args.log_level).upper()
    else:
        v = getattr(args, "verbose", 0) or 0
        if v >= 2:
            level = "DEBUG"
        elif v == 1:
            level = "INFO"
        else:
            level = DEFAULT_LOG_LEVEL

    return {"level": level, "root": getattr(args, "log_root", None)}
