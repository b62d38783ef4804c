from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
import logging
import os

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import DEPLOYMENT_ENVIRONMENT, SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from opentelemetry.trace import Span, Status, StatusCode

from internfinder.core.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s trace_id=%(trace_id)s span_id=%(span_id)s %(message)s"
REFRESH_SPAN_NAME = "external_jobs.refresh"
# Health probes would otherwise dominate the trace volume.
UNTRACED_URLS = "healthz"

_BASE_LOG_RECORD_FACTORY = logging.getLogRecordFactory()
_LOG_CORRELATION_INSTALLED = False
_HTTPX_INSTRUMENTOR = HTTPXClientInstrumentor()
_ZERO_TRACE_ID = "0" * 32
_ZERO_SPAN_ID = "0" * 16

logger = logging.getLogger(__name__)
_tracer = trace.get_tracer("internfinder.external_jobs")


@dataclass(slots=True)
class TelemetryRuntime:
    enabled: bool
    provider: TracerProvider | None


def configure_api_logging() -> None:
    _install_log_correlation()
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)


def setup_api_telemetry(app: FastAPI, settings: Settings) -> TelemetryRuntime:
    if not settings.otel_enabled:
        logger.info("tracing disabled service=%s", settings.otel_service_name)
        return TelemetryRuntime(enabled=False, provider=None)

    if settings.otel_log_correlation:
        _install_log_correlation()

    resource = Resource.create(
        {
            SERVICE_NAME: settings.otel_service_name,
            DEPLOYMENT_ENVIRONMENT: settings.environment,
        }
    )
    provider = TracerProvider(resource=resource, sampler=TraceIdRatioBased(settings.otel_trace_sample_ratio))
    exporter = _build_exporter(settings)
    if exporter is not None:
        provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app, tracer_provider=provider, excluded_urls=UNTRACED_URLS)
    # Upstream job-board calls become children of the refresh span.
    _HTTPX_INSTRUMENTOR.instrument(tracer_provider=provider)
    return TelemetryRuntime(enabled=True, provider=provider)


def shutdown_api_telemetry(app: FastAPI, runtime: TelemetryRuntime) -> None:
    if not runtime.enabled:
        return
    FastAPIInstrumentor.uninstrument_app(app)
    _HTTPX_INSTRUMENTOR.uninstrument()
    if runtime.provider is not None:
        runtime.provider.force_flush()
        runtime.provider.shutdown()


@contextmanager
def refresh_span(*, source_names: list[str], use_cache: bool) -> Iterator[Span]:
    """Span around one external-jobs aggregation cycle.

    Exceptions are recorded on the span and re-raised; the caller decides
    whether stale data is served.
    """
    with _tracer.start_as_current_span(
        REFRESH_SPAN_NAME,
        record_exception=True,
        set_status_on_exception=True,
        attributes={
            "external_jobs.sources": source_names,
            "external_jobs.use_cache": use_cache,
        },
    ) as span:
        yield span


def annotate_refresh_span(
    span: Span,
    *,
    fetched: int,
    kept: int,
    dropped: int,
    failed_sources: list[str],
    source_counts: dict[str, int],
) -> None:
    span.set_attribute("external_jobs.fetched", fetched)
    span.set_attribute("external_jobs.kept", kept)
    span.set_attribute("external_jobs.dropped", dropped)
    span.set_attribute("external_jobs.failed_sources", failed_sources)
    for source_name, count in source_counts.items():
        span.set_attribute(f"external_jobs.source.{source_name.lower()}.count", count)
    if failed_sources:
        span.add_event("external_jobs.partial", {"failed_sources": failed_sources})
    else:
        span.set_status(Status(StatusCode.OK))


def _build_exporter(settings: Settings) -> OTLPSpanExporter | None:
    endpoint = _first_configured(
        settings.otel_exporter_otlp_endpoint,
        os.getenv("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT"),
        os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"),
    )
    if endpoint is None:
        logger.info("no OTLP endpoint configured; spans stay in-process service=%s", settings.otel_service_name)
        return None

    raw_headers = _first_configured(settings.otel_exporter_otlp_headers, os.getenv("OTEL_EXPORTER_OTLP_HEADERS"))
    headers = _parse_headers(raw_headers)
    return OTLPSpanExporter(endpoint=endpoint, headers=headers or None)


def _first_configured(*values: str | None) -> str | None:
    return next((value for value in values if value), None)


def _parse_headers(raw: str | None) -> dict[str, str]:
    """Parse ``key=value,key2=value2`` OTLP header lists, ignoring malformed pairs."""
    if not raw:
        return {}
    pairs = (item.partition("=") for item in raw.split(","))
    return {key.strip(): value.strip() for key, separator, value in pairs if separator and key.strip()}


def _install_log_correlation() -> None:
    global _LOG_CORRELATION_INSTALLED
    if _LOG_CORRELATION_INSTALLED:
        return

    def record_factory(*args: object, **kwargs: object) -> logging.LogRecord:
        record = _BASE_LOG_RECORD_FACTORY(*args, **kwargs)
        context = trace.get_current_span().get_span_context()
        record.trace_id = format(context.trace_id, "032x") if context.is_valid else _ZERO_TRACE_ID
        record.span_id = format(context.span_id, "016x") if context.is_valid else _ZERO_SPAN_ID
        return record

    logging.setLogRecordFactory(record_factory)
    _LOG_CORRELATION_INSTALLED = True
