"""HTTP server for the E-Series Prometheus Exporter."""

import logging
import os

import prometheus_client
import prometheus_client.core
import starlette.applications
import starlette.requests
import starlette.responses
import starlette.routing
import structlog

from . import collector, config

CONFIG_ENV_VAR = "ESERIES_EXPORTER_CONFIG_PATH"
DEFAULT_MODULE = "default"
CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

LANDING_PAGE = """<html>
<head><title>E-Series Exporter</title></head>
<body>
<h1>E-Series Exporter</h1>
<p><a href="{metrics_path}">Run Prometheus Scrape</a></p>
<p><a href="/metrics">Exporter Metrics</a></p>
</body>
</html>
"""

logger = structlog.get_logger(__name__)


def configure_logging(log_level_name: str, log_format: str = "logfmt") -> None:
    """Configure structlog for logfmt or JSON output."""
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.processors.LogfmtRenderer(
            key_order=("timestamp", "level", "msg"),
        )
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def scrape_target(
    target_name: str,
    module: config.ModuleConfig,
) -> bytes:
    """Run one scrape of a target and render the exposition.

    Builds the target, a per-scrape registry holding the enabled collectors
    and closes the target's HTTP client once rendering is done.

    Raises:
        config.TLSConfigError: If the module's TLS settings cannot be applied.
    """
    target = config.build_target(target_name, module)
    try:
        registry = prometheus_client.core.CollectorRegistry()
        registry.register(collector.EseriesCollector(target))
        return prometheus_client.generate_latest(registry)
    finally:
        target.http_client.close()


def create_starlette_app(
    exporter_config: config.ExporterConfig,
) -> starlette.applications.Starlette:
    """Create a Starlette application for serving E-Series metrics.

    Args:
        exporter_config: Validated exporter configuration.

    Returns:
        Configured Starlette application.
    """

    def eseries_endpoint(
        request: starlette.requests.Request,
    ) -> starlette.responses.Response:
        """Scrape the requested target using the requested module.

        Args:
            request: The incoming HTTP request.

        Returns:
            PlainTextResponse with metrics in Prometheus exposition format,
            or a plain-text error.
        """
        target_name = request.query_params.get("target", "")
        if not target_name:
            return starlette.responses.PlainTextResponse(
                "'target' parameter must be specified",
                status_code=400,
            )

        module_name = request.query_params.get("module") or DEFAULT_MODULE
        module = exporter_config.modules.get(module_name)
        if module is None:
            return starlette.responses.PlainTextResponse(
                f"Unknown module {module_name}",
                status_code=404,
            )

        logger.info(
            "HTTP request",
            client_ip=request.client.host if request.client else "unknown",
            method=request.method,
            path=request.url.path,
            target=target_name,
            module=module_name,
        )
        try:
            metrics_output = scrape_target(target_name, module)
        except config.TLSConfigError:
            return starlette.responses.PlainTextResponse(
                "Error loading root CA",
                status_code=400,
            )

        return starlette.responses.PlainTextResponse(
            content=metrics_output,
            media_type=CONTENT_TYPE,
        )

    def metrics_endpoint(
        request: starlette.requests.Request,  # noqa: ARG001
    ) -> starlette.responses.Response:
        """Serve the exporter's own process metrics."""
        return starlette.responses.PlainTextResponse(
            content=prometheus_client.generate_latest(prometheus_client.REGISTRY),
            media_type=CONTENT_TYPE,
        )

    def index_endpoint(
        request: starlette.requests.Request,  # noqa: ARG001
    ) -> starlette.responses.Response:
        return starlette.responses.HTMLResponse(
            LANDING_PAGE.format(metrics_path=exporter_config.metrics_path),
        )

    routes = [
        starlette.routing.Route(
            exporter_config.metrics_path,
            eseries_endpoint,
            methods=["GET"],
        ),
        starlette.routing.Route("/metrics", metrics_endpoint, methods=["GET"]),
        starlette.routing.Route("/", index_endpoint, methods=["GET"]),
    ]

    return starlette.applications.Starlette(routes=routes)


def create_exporter(
    exporter_config: config.ExporterConfig,
) -> starlette.applications.Starlette:
    """Construct the exporter ASGI app from validated config."""
    logger.info(
        "Loaded modules",
        modules=sorted(exporter_config.modules),
        metrics_path=exporter_config.metrics_path,
    )
    return create_starlette_app(exporter_config)


def create_app(config_path: str | None = None) -> starlette.applications.Starlette:
    """Create the exporter ASGI app using a config path or environment default."""
    resolved_path = config_path or os.environ.get(CONFIG_ENV_VAR, "/config.json")
    exporter_config = config.load_config(resolved_path)
    configure_logging(exporter_config.log_level, exporter_config.log_format)
    return create_exporter(exporter_config)
