# conftest.py
# Configuração global para pytest: adiciona 'src' ao sys.path para permitir imports absolutos
import sys
from pathlib import Path

import pytest

SRC_PATH = Path(__file__).parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


@pytest.fixture(autouse=True)
def _no_proxy_env(monkeypatch):
    """Evita que proxies do ambiente interceptem os servidores locais dos testes."""
    for var in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(var, raising=False)
