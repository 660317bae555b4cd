"""Erros de coleta do exporter.

Todas as falhas de uma coleta derivam de ``ScrapeError`` e são tratadas
localmente em ``TrafficExporter.collect``: nunca chegam ao registry.
"""


class ScrapeError(Exception):
    """Falha de uma coleta ao alvo."""


class TransportError(ScrapeError):
    """Falha de conexão, timeout ou TLS; o alvo não respondeu."""


class StatusError(ScrapeError):
    """O alvo respondeu com status HTTP diferente de 200."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"status HTTP {status_code}: {body[:200]}")


class DecodeError(ScrapeError):
    """Corpo da resposta não é JSON válido ou não tem o formato esperado."""
