"""OpenTelemetry + Prometheus fallback wiring for the storefront backend."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from fastapi import FastAPI

from storefront import config

logger = logging.getLogger("storefront.observability")


_initialized = False
_enabled = False
_tracer: Any | None = None
_trace_provider: Any | None = None
_meter_provider: Any | None = None
_fastapi_instrumentor: Any | None = None

_query_counter: Any | None = None
_query_latency_hist: Any | None = None
_overflow_counter: Any | None = None

_prom_enabled = False
_prom_query_counter: Any | None = None
_prom_query_latency_hist: Any | None = None
_prom_overflow_counter: Any | None = None


def _normalize_otlp_endpoint(base_endpoint: str, signal_path: str) -> str:
    endpoint = (base_endpoint or "").strip()
    if not endpoint:
        return ""
    if endpoint.endswith(signal_path):
        return endpoint
    if endpoint.endswith("/"):
        endpoint = endpoint[:-1]
    if endpoint.endswith("/v1"):
        return f"{endpoint}{signal_path[3:]}"
    return f"{endpoint}{signal_path}"


def _labels(**values: str) -> dict[str, str]:
    return {key: (value or "").strip() or "unknown" for key, value in values.items()}


def _start_prometheus() -> None:
    global _prom_enabled, _prom_query_counter, _prom_query_latency_hist, _prom_overflow_counter

    from prometheus_client import Counter, Histogram, start_http_server

    try:
        start_http_server(config.PROM_PORT)
    except OSError as exc:
        logger.warning("Prometheus fallback not started: %s", exc)
        return

    _prom_query_counter = Counter(
        "storefront_catalog_queries_total",
        "Catalog read operations by outcome",
        ["operation", "result"],
    )
    _prom_query_latency_hist = Histogram(
        "storefront_catalog_query_latency_ms",
        "Latency of catalog read operations",
        ["operation", "result"],
    )
    _prom_overflow_counter = Counter(
        "storefront_catalog_page_overflow_total",
        "Catalog pages requested past the last match",
        ["operation"],
    )
    _prom_enabled = True
    logger.info("Prometheus fallback metrics server listening on port %s", config.PROM_PORT)


def initialize(app: FastAPI | None = None) -> None:
    global _initialized, _enabled, _tracer, _trace_provider, _meter_provider, _fastapi_instrumentor
    global _query_counter, _query_latency_hist, _overflow_counter

    if _initialized:
        if _enabled and app and _fastapi_instrumentor:
            _fastapi_instrumentor.instrument_app(app)
        return

    _initialized = True

    if not config.OTEL_ENABLED:
        logger.info("OpenTelemetry disabled (STOREFRONT_OTEL_ENABLED=false)")
        return

    from opentelemetry import metrics, trace
    from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
    from opentelemetry.sdk.metrics import MeterProvider
    from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    traces_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/traces")
    metrics_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/metrics")
    service_name = config.OTEL_SERVICE_NAME or "storefront-backend"

    resource = Resource.create({"service.name": service_name, "service.namespace": "storefront"})

    trace_provider = TracerProvider(resource=resource)
    trace_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=traces_endpoint or None)))
    trace.set_tracer_provider(trace_provider)

    metric_reader = PeriodicExportingMetricReader(OTLPMetricExporter(endpoint=metrics_endpoint or None))
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter("storefront.backend")

    _query_counter = meter.create_counter(
        "storefront_catalog_queries_total",
        unit="1",
        description="Catalog read operations by outcome",
    )
    _query_latency_hist = meter.create_histogram(
        "storefront_catalog_query_latency_ms",
        unit="ms",
        description="Latency of catalog read operations",
    )
    _overflow_counter = meter.create_counter(
        "storefront_catalog_page_overflow_total",
        unit="1",
        description="Catalog pages requested past the last match",
    )

    _trace_provider = trace_provider
    _meter_provider = meter_provider
    _tracer = trace.get_tracer("storefront.backend")
    _fastapi_instrumentor = FastAPIInstrumentor()
    _enabled = True

    if app:
        _fastapi_instrumentor.instrument_app(app)

    if config.PROM_PORT > 0:
        _start_prometheus()

    logger.info("OpenTelemetry initialized (service=%s endpoint=%s)", service_name, config.OTEL_ENDPOINT)


def shutdown(app: FastAPI | None = None) -> None:
    global _enabled
    if not _initialized:
        return
    if app and _fastapi_instrumentor:
        _fastapi_instrumentor.uninstrument_app(app)
    for provider in (_meter_provider, _trace_provider):
        if provider is None:
            continue
        try:
            provider.shutdown()
        except Exception:  # noqa: BLE001
            logger.warning("Telemetry provider shutdown failed", exc_info=True)
    _enabled = False


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    if not _enabled or _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)
        yield span


def record_query(operation: str, result: str, duration_ms: float) -> None:
    labels = _labels(operation=operation, result=result)
    duration = max(0.0, float(duration_ms))
    if _enabled and _query_counter is not None:
        _query_counter.add(1, labels)
    if _enabled and _query_latency_hist is not None:
        _query_latency_hist.record(duration, labels)
    if _prom_enabled and _prom_query_counter is not None:
        _prom_query_counter.labels(**labels).inc()
    if _prom_enabled and _prom_query_latency_hist is not None:
        _prom_query_latency_hist.labels(**labels).observe(duration)


def record_page(operation: str, total: int, returned: int) -> None:
    """Count catalog pages that came back empty while matches exist (page past the end)."""
    if total <= 0 or returned > 0:
        return
    labels = _labels(operation=operation)
    if _enabled and _overflow_counter is not None:
        _overflow_counter.add(1, labels)
    if _prom_enabled and _prom_overflow_counter is not None:
        _prom_overflow_counter.labels(**labels).inc()
