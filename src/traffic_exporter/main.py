"""Ponto de entrada do exporter.

Este módulo realiza a inicialização: parsing de argumentos CLI, configuração
de logging, instalação dos handlers de debug, montagem do registry explícito
e inicialização do servidor HTTP. A única saída anormal do processo é a falha
ao fazer bind do socket de escuta.
"""

import json as _json
import logging as _logging
import sys
import traceback as _tb

from prometheus_client import CollectorRegistry, PlatformCollector, ProcessCollector

from . import __version__
from .config.settings import load_settings
from .core.args import configure_argparser, get_log_config, parse_args
from .exporter.exporter import TrafficExporter
from .exporter.main_http import build_http_server, run_http_server
from .exporter.snapshot import ScrapeTarget
from .system.logs import get_debug_file_path

logger = _logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    """Inicializa o exporter e atende requisições até ser interrompido.

    Args:
        argv: Lista de argumentos (usada em testes). Quando ``None`` a função
            utiliza os argumentos de linha de comando do processo.
    """
    try:
        args = parse_args(argv)
    except ValueError as exc:
        configure_argparser().error(str(exc))

    settings = load_settings()
    if not args.log_level and settings.get("log_level"):
        args.log_level = settings["log_level"]
    log_conf = get_log_config(args)

    level = getattr(_logging, log_conf.get("level", "WARNING"), _logging.WARNING)
    _logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        _setup_debug_file_handler(log_conf.get("root"))
    except OSError as exc:
        logger.debug("falha ao configurar debug file handler: %s", exc, exc_info=True)

    logger.info("Iniciando traffic_exporter %s", __version__)
    target = ScrapeTarget(uri=args.scrape_uri, insecure=args.insecure)
    if target.insecure:
        logger.warning("Verificação TLS desativada para %s", target.uri)
    logger.info("Alvo da coleta: %s", target.uri)

    registry = build_registry(target, timeout=settings.get("scrape_timeout"))

    try:
        server = build_http_server(
            args.listen_host,
            args.listen_port,
            registry,
            endpoint=args.telemetry_endpoint,
            target=target.uri,
        )
    except OSError as exc:
        logger.critical("Falha ao escutar em %s: %s", args.telemetry_address, exc)
        sys.exit(1)

    run_http_server(server)


def build_registry(target: ScrapeTarget, timeout: float | None = None) -> CollectorRegistry:
    """Cria o registry explícito com o collector do Traffic Server.

    Inclui também os collectors de processo e plataforma do
    ``prometheus_client``.
    """
    registry = CollectorRegistry()
    registry.register(TrafficExporter(target, timeout=timeout))
    ProcessCollector(registry=registry)
    PlatformCollector(registry=registry)
    return registry


def _setup_debug_file_handler(root=None) -> None:
    """Instala handlers de ficheiro para debug e hook global de exceções.

    Adiciona dois handlers ao logger root: um texto legível e um JSONL (uma
    linha de JSON por evento). Falhas de escrita dos handlers são suprimidas
    para que o logging nunca derrube o exporter. Também instala um
    ``sys.excepthook`` que envia exceções não tratadas para o logger root.
    """
    debug_path = get_debug_file_path(root)

    fh = _logging.FileHandler(str(debug_path), encoding="utf-8")
    fh.setLevel(_logging.INFO)
    fh.setFormatter(_logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    jpath = debug_path.with_suffix(".jsonl")
    jfh = _logging.FileHandler(str(jpath), encoding="utf-8")
    jfh.setLevel(_logging.INFO)
    jfh.setFormatter(_JSONFormatter())

    root_logger = _logging.getLogger()
    if _has_existing_file_handler(root_logger, fh, jfh):
        fh.close()
        jfh.close()
    else:
        _wrap_emit_safe(fh)
        _wrap_emit_safe(jfh)
        root_logger.addHandler(fh)
        root_logger.addHandler(jfh)

    def _exc_hook(exc_type, exc_value, exc_tb):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        root_logger.error("Unhandled exception", exc_info=(exc_type, exc_value, exc_tb))

    sys.excepthook = _exc_hook


class _JSONFormatter(_logging.Formatter):
    """Uma linha JSON por evento: ts, level, name, msg e exc quando houver."""

    def format(self, record):
        obj = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            obj["exc"] = "".join(_tb.format_exception(*record.exc_info))
        return _json.dumps(obj, ensure_ascii=False)


def _has_existing_file_handler(root, fh, jfh) -> bool:
    bases = (getattr(fh, "baseFilename", None), getattr(jfh, "baseFilename", None))
    for h in root.handlers:
        if isinstance(h, _logging.FileHandler) and getattr(h, "baseFilename", None) in bases:
            return True
    return False


def _wrap_emit_safe(handler):
    import types as _types

    orig = handler.emit

    def _emit_safe(self, record):
        try:
            return orig(record)
        except Exception:
            # sem logger aqui: o próprio handler pode ser o chamador
            self.handleError(record)
            return None

    handler.emit = _types.MethodType(_emit_safe, handler)  # type: ignore[assignment]


if __name__ == "__main__":
    main()
