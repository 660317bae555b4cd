import json
import threading

import pytest
import requests
from prometheus_client import CollectorRegistry

from traffic_exporter.exporter import main_http
from traffic_exporter.exporter.exporter import TrafficExporter
from traffic_exporter.exporter.snapshot import ScrapeTarget

PAYLOAD = '{"traffic":{"ccons":12,"cobj":3,"cpu":1.5,"cused":2.5,"hit":4,"mem":3.5,"reqs":5,"rx":6,"tx":7,"tpr":8.5,"uptime":9}}'


class _Response:
    def __init__(self, status_code, text):
        self.status_code = status_code
        self.text = text

    def close(self):
        pass


class _Session:
    def __init__(self, status_code=200, text=PAYLOAD):
        self.verify = True
        self.status_code = status_code
        self.body = text
        self.calls = 0

    def get(self, url, timeout=None, stream=False):
        self.calls += 1
        return _Response(self.status_code, self.body)


@pytest.fixture
def served():
    """Sobe o servidor do exporter numa porta livre e devolve (base_url, sessão falsa)."""
    session = _Session()
    registry = CollectorRegistry()
    registry.register(TrafficExporter(ScrapeTarget("http://ats.local/_billing"), session=session))
    server = main_http.build_http_server("127.0.0.1", 0, registry, endpoint="/metrics", target="http://ats.local/_billing")
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}", session
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


def test_metrics_endpoint_scrapes_on_every_request(served):
    """Cada GET em /metrics faz uma coleta nova (sem cache)."""
    base, session = served

    first = requests.get(f"{base}/metrics", timeout=5)
    second = requests.get(f"{base}/metrics?foo=bar", timeout=5)

    assert first.status_code == 200
    assert first.headers["Content-Type"].startswith("text/plain")
    assert "Trafficserver_up 1.0" in first.text
    assert "Trafficserver_ccons 12.0" in first.text
    assert second.status_code == 200
    assert session.calls == 2


def test_metrics_endpoint_returns_200_on_scrape_failure(served):
    base, session = served
    session.status_code = 500
    session.body = "boom"

    resp = requests.get(f"{base}/metrics", timeout=5)

    assert resp.status_code == 200
    assert "Trafficserver_up 1.0" in resp.text
    assert "Trafficserver_exporter_scrape_failures_total 1.0" in resp.text
    assert "Trafficserver_ccons" not in resp.text


def test_metrics_endpoint_returns_200_on_deeply_nested_body(served):
    """Corpo 200 com aninhamento profundo conta como falha de decodificação."""
    base, session = served
    session.body = '{"traffic": {"load": ' + "[" * 100000 + "]" * 100000 + "}}"

    resp = requests.get(f"{base}/metrics", timeout=5)

    assert resp.status_code == 200
    assert "Trafficserver_up 1.0" in resp.text
    assert "Trafficserver_exporter_scrape_failures_total 1.0" in resp.text
    assert "Trafficserver_ccons" not in resp.text


def test_metrics_endpoint_openmetrics_negotiation(served):
    base, _ = served
    resp = requests.get(f"{base}/metrics", headers={"Accept": "application/openmetrics-text; version=1.0.0"}, timeout=5)
    assert resp.status_code == 200
    assert resp.headers["Content-Type"].startswith("application/openmetrics-text")
    assert resp.text.rstrip().endswith("# EOF")


def test_landing_page_links_to_metrics(served):
    base, session = served
    resp = requests.get(f"{base}/", timeout=5)
    assert resp.status_code == 200
    assert resp.headers["Content-Type"].startswith("text/html")
    assert '<a href="/metrics">' in resp.text
    assert session.calls == 0


def test_health_endpoint_reports_process(served):
    base, session = served
    resp = requests.get(f"{base}/health", timeout=5)
    assert resp.status_code == 200
    data = json.loads(resp.text)
    assert data["status"] == "ok"
    assert data["target"] == "http://ats.local/_billing"
    assert "memory_rss_bytes" in data["process"]
    assert session.calls == 0


def test_unknown_path_is_404(served):
    base, _ = served
    resp = requests.get(f"{base}/nope", timeout=5)
    assert resp.status_code == 404


def test_custom_endpoint():
    registry = CollectorRegistry()
    registry.register(TrafficExporter(ScrapeTarget("http://ats.local/_billing"), session=_Session()))
    server = main_http.build_http_server("127.0.0.1", 0, registry, endpoint="/probe")
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        base = f"http://127.0.0.1:{server.server_address[1]}"
        assert requests.get(f"{base}/probe", timeout=5).status_code == 200
        assert requests.get(f"{base}/metrics", timeout=5).status_code == 404
        assert '<a href="/probe">' in requests.get(f"{base}/", timeout=5).text
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


def test_build_http_server_bind_failure_raises_oserror():
    registry = CollectorRegistry()
    server = main_http.build_http_server("127.0.0.1", 0, registry)
    try:
        port = server.server_address[1]
        with pytest.raises(OSError):
            main_http.build_http_server("127.0.0.1", port, registry)
    finally:
        server.server_close()


def test_run_http_server_closes_on_keyboard_interrupt(monkeypatch):
    closed = {}

    class FakeServer:
        def serve_forever(self):
            raise KeyboardInterrupt

        def server_close(self):
            closed["ok"] = True

    main_http.run_http_server(FakeServer())
    assert closed.get("ok") is True
