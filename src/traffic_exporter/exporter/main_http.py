"""Servidor HTTP do exporter: expõe o endpoint de métricas, ``/`` e ``/health``.

Cada GET no endpoint de métricas dispara uma coleta nova ao alvo através do
registry; não há cache entre requisições. A resposta é sempre 200 com o
conteúdo disponível (falhas de coleta aparecem apenas em ``up`` e no
contador de falhas).
"""

import json
import logging
import socket
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlsplit

import psutil
from prometheus_client import CollectorRegistry
from prometheus_client.exposition import choose_encoder

from .. import __version__

logger = logging.getLogger(__name__)

LANDING_PAGE = """<html>
<head><title>Traffic Server Exporter</title></head>
<body>
<h1>Traffic Server Exporter</h1>
<p><a href="{endpoint}">Metrics</a></p>
</body>
</html>
"""


class ExporterHTTPServer(ThreadingHTTPServer):
    """``ThreadingHTTPServer`` que carrega o registry e o endpoint de métricas."""

    daemon_threads = True
    # bind em porta ocupada deve falhar
    allow_reuse_port = False

    def __init__(self, server_address, registry: CollectorRegistry, endpoint: str = "/metrics", target: str = ""):
        self.registry = registry
        self.endpoint = endpoint
        self.target = target
        if ":" in server_address[0]:
            self.address_family = socket.AF_INET6
        super().__init__(server_address, ExporterHandler)


class ExporterHandler(BaseHTTPRequestHandler):
    """Handler HTTP para o endpoint de métricas, a landing page e ``/health``."""

    server: ExporterHTTPServer

    def do_GET(self):
        """Trata requisições GET.

        Endpoints suportados:
        - <endpoint> (padrão /metrics): exposição Prometheus/OpenMetrics.
        - /: página HTML com link para o endpoint de métricas.
        - /health: JSON com estado do processo.
        """
        path = urlsplit(self.path).path
        if path == self.server.endpoint:
            self._send_metrics()
        elif path == "/":
            body = LANDING_PAGE.format(endpoint=self.server.endpoint).encode("utf-8")
            self._send(200, "text/html; charset=utf-8", body)
        elif path == "/health":
            status = {
                "status": "ok",
                "version": __version__,
                "target": self.server.target,
                "process": _get_process_metrics(),
            }
            self._send(200, "application/json", json.dumps(status).encode("utf-8"))
        else:
            self._send(404, "text/plain; charset=utf-8", b"Not Found")

    def _send_metrics(self):
        encoder, content_type = choose_encoder(self.headers.get("Accept"))
        output = encoder(self.server.registry)
        self._send(200, content_type, output)

    def _send(self, code: int, content_type: str, body: bytes):
        self.send_response(code)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):  # noqa: A002
        """Envia o access log para o logger do módulo em DEBUG."""
        logger.debug("%s - %s", self.address_string(), format % args)


def _get_process_metrics() -> dict:
    """Coleta métricas do próprio processo em tempo real."""
    proc = psutil.Process()
    metrics = {
        "cpu_percent": proc.cpu_percent(interval=0.0),
        "memory_percent": proc.memory_percent(),
        "memory_rss_bytes": getattr(proc.memory_info(), "rss", 0),
        "uptime_seconds": float(max(0, (time.time() - proc.create_time()))),
        "num_threads": proc.num_threads(),
    }
    # num_fds não existe em todas as plataformas
    num_fds_fn = getattr(proc, "num_fds", None)
    if callable(num_fds_fn):
        try:
            metrics["num_fds"] = num_fds_fn()
        except psutil.Error as exc:
            logger.debug("Falha ao obter número de descritores de arquivos: %s", exc, exc_info=True)
    return metrics


def build_http_server(host: str, port: int, registry: CollectorRegistry, endpoint: str = "/metrics", target: str = ""):
    """Cria e faz bind do servidor HTTP.

    Levanta ``OSError`` se o endereço não puder ser usado.
    """
    server = ExporterHTTPServer((host, port), registry, endpoint=endpoint, target=target)  # nosec B104
    logger.info("Servindo em http://%s:%d (%s, /health)", host or "0.0.0.0", server.server_address[1], endpoint)  # nosec B104
    return server


def run_http_server(server: ExporterHTTPServer) -> None:
    """Atende requisições até ``KeyboardInterrupt`` e fecha o socket."""
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Recebido KeyboardInterrupt, saindo...")
    finally:
        server.server_close()
