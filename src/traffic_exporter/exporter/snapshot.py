"""Modelo e decodificação do payload ``/_billing`` do Traffic Server.

Exemplo de corpo esperado::

    {"traffic": {"ccons": 4304, "cobj": 33013850, "cpu": 14.47,
                 "cused": 29.07, "hit": 280225, "load": "1.14,1.40,1.90",
                 "mem": 72.03, "reqs": 307648, "rpc": 1.88,
                 "rx": 806138577, "time": 1540284300, "tpr": 80.37,
                 "tx": 17016624097, "uptime": 708202}}

Campos ausentes ou ``null`` assumem o valor zero do tipo; tipos errados
invalidam o payload inteiro.
"""

import json
import math
from dataclasses import dataclass, fields

from .errors import DecodeError

# limites de um inteiro de 64 bits com sinal
INT_MIN = -(2**63)
INT_MAX = 2**63 - 1


@dataclass(frozen=True)
class ScrapeTarget:
    """Alvo da coleta: URI e flag para ignorar a verificação TLS."""

    uri: str
    insecure: bool = False


@dataclass(frozen=True)
class TrafficSnapshot:
    """Valores de uma única leitura do objeto ``traffic``."""

    ccons: int = 0
    cobj: int = 0
    cpu: float = 0.0
    cused: float = 0.0
    hit: int = 0
    load: str = ""
    mem: float = 0.0
    reqs: int = 0
    rpc: float = 0.0
    rx: int = 0
    time: int = 0
    tpr: float = 0.0
    tx: int = 0
    uptime: int = 0


def _coerce_field(name: str, kind: type, raw):
    """Converte um valor JSON para o tipo do campo ou levanta DecodeError."""
    if raw is None:
        return kind()
    # bool é subclasse de int; JSON true/false nunca é numérico aqui
    if isinstance(raw, bool):
        raise DecodeError(f"campo {name!r}: esperado {kind.__name__}, recebido bool")
    if kind is int:
        if isinstance(raw, int):
            if not INT_MIN <= raw <= INT_MAX:
                raise DecodeError(f"campo {name!r}: inteiro fora do intervalo de 64 bits")
            return raw
        raise DecodeError(f"campo {name!r}: esperado inteiro, recebido {raw!r}")
    if kind is float:
        if isinstance(raw, (int, float)):
            try:
                value = float(raw)
            except OverflowError as exc:
                raise DecodeError(f"campo {name!r}: número fora do intervalo de float64") from exc
            # "1e400" vira inf no json do Python
            if not math.isfinite(value):
                raise DecodeError(f"campo {name!r}: número fora do intervalo de float64")
            return value
        raise DecodeError(f"campo {name!r}: esperado número, recebido {raw!r}")
    if isinstance(raw, str):
        return raw
    raise DecodeError(f"campo {name!r}: esperado string, recebido {raw!r}")


def _reject_constant(name: str):
    raise ValueError(f"constante não permitida em JSON: {name}")


def parse_snapshot(body: str | bytes) -> TrafficSnapshot:
    """Decodifica o corpo da resposta em um ``TrafficSnapshot``.

    Levanta ``DecodeError`` se o corpo não for JSON, se não houver um objeto
    ``traffic`` no topo ou se algum campo tiver tipo incompatível.
    """
    try:
        doc = json.loads(body, parse_constant=_reject_constant)
    except (TypeError, ValueError, RecursionError) as exc:
        raise DecodeError(f"JSON inválido: {exc}") from exc

    if not isinstance(doc, dict):
        raise DecodeError("payload deve ser um objeto JSON")
    traffic = doc.get("traffic")
    if not isinstance(traffic, dict):
        raise DecodeError("payload sem objeto 'traffic'")

    values = {}
    for f in fields(TrafficSnapshot):
        values[f.name] = _coerce_field(f.name, f.type, traffic.get(f.name))
    return TrafficSnapshot(**values)
