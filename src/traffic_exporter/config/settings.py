"""Configurações do exporter.

Centraliza os valores padrão da CLI, o namespace das métricas e o timeout
usado nas coletas. ``load_settings()`` combina um arquivo ``.env`` com as
variáveis de ambiente do processo (o ambiente tem prioridade).

As funções públicas principais são:

- ``load_settings()`` -> dicionário com chaves "scrape_timeout" e "log_level".
- ``parse_listen_address()`` -> tupla ``(host, port)`` a partir de ``host:port``.
"""

import os
from pathlib import Path


# ========================
# Constantes e padrões globais
# ========================

NAMESPACE = "Trafficserver"

ENV_PREFIX = "TRAFFIC_EXPORTER_"

DEFAULT_TELEMETRY_ADDRESS = ":8110"
DEFAULT_TELEMETRY_ENDPOINT = "/metrics"
DEFAULT_SCRAPE_URI = "http://localhost/_billing"
DEFAULT_SCRAPE_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "WARNING"


# ========================
# 1. Carregamento das configurações
# ========================


def load_settings() -> dict:
    """Carrega configurações combinando DEFAULTS + .env + ambiente.

    Retorna um dicionário com as chaves:

    - "scrape_timeout": timeout (segundos) do GET ao alvo; ``None`` desativa
    - "log_level": nível de log configurado, ou ``None`` quando ausente
    """
    import logging

    logger = logging.getLogger(__name__)

    project_root = Path(__file__).resolve().parents[3]
    env_path = Path(os.getenv(f"{ENV_PREFIX}ENV_FILE", project_root / ".env"))

    env_items = _merge_env_items(env_path, logger)

    return {
        "scrape_timeout": _read_scrape_timeout(env_items, logger),
        "log_level": env_items.get(f"{ENV_PREFIX}LOG_LEVEL") or None,
    }


# ========================
# 2. Funções auxiliares para ambiente
# ========================


def _read_env_file(path: Path | str) -> dict:
    """Lê um arquivo `.env` e devolve um dicionário chave->valor.

    Linhas vazias e comentários (começando com '#') são ignorados.
    """
    import logging

    logger = logging.getLogger(__name__)
    result: dict[str, str] = {}
    p = Path(path)
    if not p.exists():
        return result
    try:
        with p.open("r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if "=" not in line:
                    continue
                key, val = line.split("=", 1)
                result[key.strip()] = val.strip().strip('"').strip("'")
    except OSError as exc:
        logger.debug("Falha ao ler .env em %s: %s", p, exc)
        return {}
    return result


def _merge_env_items(env_path: Path, logger) -> dict:
    """Retorna um mapeamento combinado de `.env` e env vars do processo.

    As variáveis do processo sobrescrevem o arquivo `.env`.
    """
    env_items = _read_env_file(env_path)
    if env_items == {} and env_path.exists():
        logger.warning("Erro ou ficheiro .env vazio em %s", env_path)
    env_items.update(os.environ)
    return env_items


def _read_scrape_timeout(env_items: dict, logger) -> float | None:
    """Lê ``TRAFFIC_EXPORTER_SCRAPE_TIMEOUT``; ``0`` desativa o timeout."""
    key = f"{ENV_PREFIX}SCRAPE_TIMEOUT"
    raw = env_items.get(key)
    if raw is None or str(raw).strip() == "":
        return DEFAULT_SCRAPE_TIMEOUT
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("%s inválido: %s", key, raw)
        return DEFAULT_SCRAPE_TIMEOUT
    if value < 0.0:
        logger.warning("%s deve ser >= 0: %s", key, raw)
        return DEFAULT_SCRAPE_TIMEOUT
    return value or None


# ========================
# 3. Endereço de escuta
# ========================


def parse_listen_address(address: str) -> tuple[str, int]:
    """Separa ``host:port`` em ``(host, port)``.

    Um host vazio (ex: ``:8110``) significa todas as interfaces. Endereços
    IPv6 podem vir entre colchetes (``[::1]:8110``).
    """
    if not isinstance(address, str) or ":" not in address:
        raise ValueError(f"endereço de escuta deve ter o formato host:porta: {address!r}")
    host, _, raw_port = address.rpartition(":")
    host = host.strip()
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port = int(raw_port)
    except ValueError as exc:
        raise ValueError(f"porta inválida em {address!r}") from exc
    if not 0 <= port <= 65535:
        raise ValueError(f"porta fora do intervalo 0-65535 em {address!r}")
    return host, port
