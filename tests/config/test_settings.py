import importlib
import logging

import pytest

settings_mod = importlib.import_module("traffic_exporter.config.settings")


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.setenv("TRAFFIC_EXPORTER_ENV_FILE", str(tmp_path / "missing.env"))
    monkeypatch.delenv("TRAFFIC_EXPORTER_SCRAPE_TIMEOUT", raising=False)
    monkeypatch.delenv("TRAFFIC_EXPORTER_LOG_LEVEL", raising=False)


def test_load_settings_defaults():
    cfg = settings_mod.load_settings()
    assert cfg["scrape_timeout"] == settings_mod.DEFAULT_SCRAPE_TIMEOUT
    assert cfg["log_level"] is None


def test_load_settings_env_file(monkeypatch, tmp_path):
    """Teste para leitura do .env com comentários e aspas."""
    env_file = tmp_path / ".env"
    env_file.write_text('# comentário\nTRAFFIC_EXPORTER_SCRAPE_TIMEOUT="2.5"\nlinha sem igual\nTRAFFIC_EXPORTER_LOG_LEVEL=info\n')
    monkeypatch.setenv("TRAFFIC_EXPORTER_ENV_FILE", str(env_file))

    cfg = settings_mod.load_settings()
    assert cfg["scrape_timeout"] == 2.5
    assert cfg["log_level"] == "info"


def test_process_env_overrides_env_file(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("TRAFFIC_EXPORTER_SCRAPE_TIMEOUT=2.5\n")
    monkeypatch.setenv("TRAFFIC_EXPORTER_ENV_FILE", str(env_file))
    monkeypatch.setenv("TRAFFIC_EXPORTER_SCRAPE_TIMEOUT", "7")

    assert settings_mod.load_settings()["scrape_timeout"] == 7.0


def test_scrape_timeout_zero_disables(monkeypatch):
    monkeypatch.setenv("TRAFFIC_EXPORTER_SCRAPE_TIMEOUT", "0")
    assert settings_mod.load_settings()["scrape_timeout"] is None


@pytest.mark.parametrize("raw", ["abc", "-1"])
def test_scrape_timeout_invalid_keeps_default(monkeypatch, caplog, raw):
    caplog.set_level(logging.WARNING)
    monkeypatch.setenv("TRAFFIC_EXPORTER_SCRAPE_TIMEOUT", raw)

    assert settings_mod.load_settings()["scrape_timeout"] == settings_mod.DEFAULT_SCRAPE_TIMEOUT
    assert any("TRAFFIC_EXPORTER_SCRAPE_TIMEOUT" in r.message for r in caplog.records)


def test_empty_env_file_warns(monkeypatch, tmp_path, caplog):
    caplog.set_level(logging.WARNING)
    env_file = tmp_path / ".env"
    env_file.write_text("")
    monkeypatch.setenv("TRAFFIC_EXPORTER_ENV_FILE", str(env_file))

    settings_mod.load_settings()
    assert any(".env vazio" in r.message for r in caplog.records)


@pytest.mark.parametrize(
    "address, expected",
    [
        (":8110", ("", 8110)),
        ("0.0.0.0:9117", ("0.0.0.0", 9117)),
        ("localhost:0", ("localhost", 0)),
        ("[::1]:8110", ("::1", 8110)),
    ],
)
def test_parse_listen_address(address, expected):
    assert settings_mod.parse_listen_address(address) == expected


@pytest.mark.parametrize("address", ["8110", "host:", "host:abc", ":-1", ":65536", None])
def test_parse_listen_address_invalid(address):
    with pytest.raises(ValueError):
        settings_mod.parse_listen_address(address)
