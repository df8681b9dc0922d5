"""Metric producers feeding the snapshot collector."""

from promexport.infrastructure.producers.build_info import BuildInfoProducer
from promexport.infrastructure.producers.registry_producer import PrometheusClientProducer

__all__: list[str] = ["BuildInfoProducer", "PrometheusClientProducer"]
