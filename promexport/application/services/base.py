"""LoggingMixin shared by the exporter services.

Every exporter log line carries the service class, the pipeline side it
belongs to (push, pull, collect or bootstrap) and, where one is known, the
tenant. Operation loggers add the correlation ID of the running export cycle
or scrape.
"""

import structlog

from promexport.infrastructure.observability.correlation import get_correlation_id


class LoggingMixin:
    """Structured logging for exporter services.

    Example:
        >>> class PushDispatcher(LoggingMixin):
        ...     def __init__(self, tenant: TenantContext) -> None:
        ...         self._init_logger("push", tenant_id=tenant.tenant_id)
        ...
        ...     async def send(self, body: str) -> PushOutcome:
        ...         log = self._log_operation("send", bytes=len(body))
    """

    _log: structlog.BoundLogger

    def _init_logger(self, component: str = "exporter", **identity: object) -> None:
        """Bind the service logger.

        Args:
            component: Pipeline side, e.g. "push" or "pull".
            **identity: Fixed context for the instance's lifetime,
                such as tenant_id. None values are skipped.
        """
        bound = {key: value for key, value in identity.items() if value is not None}
        self._log = structlog.get_logger().bind(
            service=type(self).__name__,
            component=component,
            **bound,
        )

    def _log_operation(self, operation: str, **context: object) -> structlog.BoundLogger:
        correlation_id = get_correlation_id()
        if correlation_id:
            context.setdefault("correlation_id", correlation_id)
        return self._log.bind(operation=operation, **context)
