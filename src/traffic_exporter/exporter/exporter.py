"""Collector Prometheus para o status ``/_billing`` do Traffic Server.

Cada chamada a ``collect()`` executa exatamente uma coleta ao alvo:
GET HTTP(S), decodificação do JSON e conversão de cada campo em uma amostra
tipada. Coletas concorrentes são serializadas por um lock que cobre a
sequência inteira; falhas nunca são propagadas ao registry, apenas
registradas no log e refletidas em ``up`` e no contador de falhas.
"""

import logging
import threading
import time

import requests  # type: ignore[import-untyped]
from prometheus_client import Counter
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily

from ..config.settings import DEFAULT_SCRAPE_TIMEOUT, NAMESPACE
from .errors import DecodeError, ScrapeError, StatusError, TransportError
from .snapshot import ScrapeTarget, TrafficSnapshot, parse_snapshot

logger = logging.getLogger(__name__)

GAUGE = "gauge"
COUNTER = "counter"

# (campo do snapshot, tipo, help). "load", "rpc" e "time" não são expostos;
# "tpr" e "uptime" saem como counters.
TRAFFIC_METRICS = (
    ("ccons", GAUGE, "The current connecting requests."),
    ("cobj", COUNTER, "Number of traffic server close objects."),
    ("cpu", GAUGE, "The current percentage CPU used in system."),
    ("cused", GAUGE, "The current percentage traffic server used cpu."),
    ("hit", COUNTER, "The total hit request in 5 minutes."),
    ("mem", GAUGE, "The current percentage traffic server used memory."),
    ("reqs", COUNTER, "The total request in 5 minutes."),
    ("rx", COUNTER, "The total receive bytes in 5 minutes."),
    ("tx", COUNTER, "The total transport bytes in 5 minutes."),
    ("tpr", COUNTER, "Unknown."),
    ("uptime", COUNTER, "Current uptime in seconds (*)"),
)

UP_HELP = "Could the traffic server be reached"
SCRAPE_FAILURES_HELP = "Number of errors while scraping traffic server."


class TrafficExporter:
    """Collector customizado: registrar em um ``CollectorRegistry``.

    Args:
        target: URI do alvo e flag ``insecure`` (ignora verificação TLS).
        session: ``requests.Session`` a usar; criada internamente se ``None``.
        timeout: timeout (segundos) do GET; ``None`` desativa.
        namespace: prefixo aplicado a todos os nomes de métricas.
    """

    def __init__(
        self,
        target: ScrapeTarget,
        session: requests.Session | None = None,
        timeout: float | None = DEFAULT_SCRAPE_TIMEOUT,
        namespace: str = NAMESPACE,
    ):
        self.target = target
        self.timeout = timeout
        self.namespace = namespace
        self._lock = threading.Lock()
        self._session = session if session is not None else requests.Session()
        self._session.verify = not target.insecure
        # registry=None: o contador só é exposto através deste collector
        self._scrape_failures = Counter(
            "exporter_scrape_failures_total",
            SCRAPE_FAILURES_HELP,
            namespace=namespace,
            registry=None,
        )

    def _name(self, name: str) -> str:
        return f"{self.namespace}_{name}"

    # ========================
    # 1. Interface do registry
    # ========================

    def describe(self) -> list:
        """Retorna descritores (famílias sem amostras) de todas as métricas."""
        descs = [GaugeMetricFamily(self._name("up"), UP_HELP)]
        descs.extend(self._scrape_failures.describe())
        for field, kind, help_text in TRAFFIC_METRICS:
            family = GaugeMetricFamily if kind == GAUGE else CounterMetricFamily
            descs.append(family(self._name(field), help_text))
        return descs

    def collect(self) -> list:
        """Executa uma coleta e retorna as amostras acumuladas.

        O lock cobre GET, decodificação e emissão: chamadas concorrentes
        recebem conjuntos completos e nunca intercalados.
        """
        with self._lock:
            return self._scrape()

    # ========================
    # 2. Ciclo de coleta
    # ========================

    def _scrape(self) -> list:
        metrics = []
        started = time.monotonic()
        try:
            response = self._fetch()
        except TransportError as exc:
            logger.error("Falha ao conectar em %s: %s", self.target.uri, exc)
            metrics.append(self._up(0))
            self._scrape_failures.inc()
            metrics.extend(self._scrape_failures.collect())
            return metrics

        metrics.append(self._up(1))
        try:
            snapshot = self._read_snapshot(response)
        except ScrapeError as exc:
            logger.error("Falha na coleta de %s: %s", self.target.uri, exc)
            self._scrape_failures.inc()
        else:
            metrics.extend(self._snapshot_metrics(snapshot))
            logger.debug("Coleta de %s concluída em %.3fs", self.target.uri, time.monotonic() - started)
        metrics.extend(self._scrape_failures.collect())
        return metrics

    def _fetch(self):
        """Executa o GET; erros de transporte viram ``TransportError``."""
        try:
            return self._session.get(self.target.uri, timeout=self.timeout, stream=True)
        except requests.RequestException as exc:
            raise TransportError(str(exc)) from exc

    def _read_snapshot(self, response) -> TrafficSnapshot:
        """Lê o corpo completo, valida o status e decodifica o payload."""
        read_error = None
        try:
            body = response.text
        except requests.RequestException as exc:
            body = ""
            read_error = exc
        finally:
            response.close()

        if response.status_code != 200:
            raise StatusError(response.status_code, str(read_error) if read_error is not None else body)
        if read_error is not None:
            raise DecodeError(f"falha ao ler corpo da resposta: {read_error}")
        return parse_snapshot(body)

    # ========================
    # 3. Conversão em amostras
    # ========================

    def _up(self, value: int) -> GaugeMetricFamily:
        return GaugeMetricFamily(self._name("up"), UP_HELP, value=value)

    def _snapshot_metrics(self, snapshot: TrafficSnapshot) -> list:
        out = []
        for field, kind, help_text in TRAFFIC_METRICS:
            value = float(getattr(snapshot, field))
            if kind == GAUGE:
                out.append(GaugeMetricFamily(self._name(field), help_text, value=value))
            else:
                out.append(CounterMetricFamily(self._name(field), help_text, value=value))
        return out
