"""traffic_exporter: exporter Prometheus para o status de billing do Traffic Server.

Consulta o endpoint ``/_billing`` de um proxy Traffic Server, decodifica o
JSON e republica os valores como métricas no formato de exposição do
Prometheus.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
