"""Ports (protocols) the export services depend on."""

from promexport.application.ports.export_sink import ExportSinkPort, PushOutcome
from promexport.application.ports.metric_producer import MetricProducerPort

__all__: list[str] = ["ExportSinkPort", "MetricProducerPort", "PushOutcome"]
