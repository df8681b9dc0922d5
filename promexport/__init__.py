"""
promexport - Prometheus export pipeline

Exports a process's accumulated metrics to Prometheus-compatible backends,
either by hosting a scrape endpoint (pull) or by shipping exposition text to
a push gateway (push).

Pipeline stages:
- Snapshot collection from registered metric producers
- Exposition serialization (Prometheus text format 0.0.4)
- Bounded-concurrency push dispatch or scrape response
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
