"""Observability setup for OpenTelemetry, metrics, and structured logging."""

import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.resources import Resource
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CollectorRegistry
import structlog

from .config import settings

SERVICE_NAME = "booking-flow-api"
SERVICE_VERSION = "1.0.0"

# Prometheus metrics
REGISTRY = CollectorRegistry()

# Request metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=REGISTRY
)

REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=REGISTRY
)

# Flow metrics
FLOW_TRANSITIONS = Counter(
    'booking_flow_transitions_total',
    'Booking flow step transitions',
    ['step'],
    registry=REGISTRY
)

GUARD_REJECTIONS = Counter(
    'booking_flow_guard_rejections_total',
    'Step requests rejected by a guard',
    ['requested_step', 'redirect_to'],
    registry=REGISTRY
)

BOOKINGS_CREATED = Counter(
    'booking_flow_bookings_created_total',
    'Bookings created through the flow',
    ['currency'],
    registry=REGISTRY
)

PAYMENTS_CREATED = Counter(
    'booking_flow_payments_created_total',
    'Payments created through the flow',
    ['method', 'outcome'],
    registry=REGISTRY
)

BACKEND_ERRORS = Counter(
    'booking_flow_backend_errors_total',
    'Backend calls that failed, by error category',
    ['category'],
    registry=REGISTRY
)

STALE_RESULTS = Counter(
    'booking_flow_stale_results_total',
    'Backend results discarded because the draft was reset meanwhile',
    ['operation'],
    registry=REGISTRY
)

SNAPSHOT_RESTORE_FAILURES = Counter(
    'booking_flow_snapshot_restore_failures_total',
    'Persisted draft fields that could not be restored',
    ['key'],
    registry=REGISTRY
)

PRICE_DIVERGENCE = Counter(
    'booking_flow_price_divergence_total',
    'Server booking totals that differ from the draft total',
    registry=REGISTRY
)

PENDING_BOOKINGS = Gauge(
    'booking_flow_admin_pending_bookings',
    'Bookings waiting for admin approval, as last polled',
    registry=REGISTRY
)


def setup_structured_logging():
    """Configure structured logging with structlog."""

    def add_trace_context(logger, method_name, event_dict):
        """Add trace context to log events."""
        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            event_dict['trace_id'] = format(ctx.trace_id, '032x')
            event_dict['span_id'] = format(ctx.span_id, '016x')
        return event_dict

    structlog.configure(
        processors=[
            # request_id and booking_session are bound by RequestIDMiddleware
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def setup_tracing(app_name: str = SERVICE_NAME):
    """Setup OpenTelemetry tracing."""
    resource = Resource.create({
        "service.name": app_name,
        "service.version": SERVICE_VERSION,
        "environment": settings.environment,
    })

    provider = TracerProvider(resource=resource)
    if settings.otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint)))
    trace.set_tracer_provider(provider)

    return trace.get_tracer(__name__)


def instrument_fastapi(app):
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine):
    """Instrument the draft storage engine with OpenTelemetry."""
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


class MetricsCollector:
    """Collector for booking flow metrics."""

    @staticmethod
    def record_request(method: str, endpoint: str, status_code: int, duration_seconds: float):
        """Record one served HTTP request."""
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status_code=str(status_code)).inc()
        REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration_seconds)

    @staticmethod
    def record_transition(step: str):
        """Record the sequencer landing on a step."""
        FLOW_TRANSITIONS.labels(step=step).inc()

    @staticmethod
    def record_guard_rejection(requested_step: str, redirect_to: str):
        GUARD_REJECTIONS.labels(requested_step=requested_step, redirect_to=redirect_to).inc()

    @staticmethod
    def record_booking_created(currency: str):
        BOOKINGS_CREATED.labels(currency=currency).inc()

    @staticmethod
    def record_payment_created(method: str, outcome: str):
        PAYMENTS_CREATED.labels(method=method, outcome=outcome).inc()

    @staticmethod
    def record_backend_error(category: str):
        BACKEND_ERRORS.labels(category=category).inc()

    @staticmethod
    def record_stale_result(operation: str):
        STALE_RESULTS.labels(operation=operation).inc()

    @staticmethod
    def record_restore_failure(key: str):
        SNAPSHOT_RESTORE_FAILURES.labels(key=key).inc()

    @staticmethod
    def record_price_divergence():
        PRICE_DIVERGENCE.inc()

    @staticmethod
    def set_pending_bookings(count: int):
        """Set the number of bookings awaiting admin approval."""
        PENDING_BOOKINGS.set(count)


def get_prometheus_metrics():
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()


def get_logger(name: str):
    """Get a structlog logger bound to a component name."""
    return structlog.get_logger(name)
