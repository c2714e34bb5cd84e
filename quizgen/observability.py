"""Observability facade for the question generation pipeline.

Routes error capture to Sentry and metrics/traces to the OpenTelemetry API.
Every method is a no-op until ``init()`` has been called, so library users
who never configure observability pay nothing for it.

Example:
    Basic usage::

        from quizgen.observability import observability

        observability.init(service_name="quizgen", environment="production",
                           sentry_dsn=settings.sentry_dsn)

        with observability.start_span("generate_questions") as span:
            span.set_attribute("domain", "mathematics")

        observability.record_metric(
            "quizgen.questions.validated", value=3, labels={"domain": "mathematics"}
        )
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Literal, Optional

import sentry_sdk
from opentelemetry import metrics, trace
from opentelemetry.trace import StatusCode

logger = logging.getLogger(__name__)

MetricType = Literal["counter", "histogram"]
ErrorLevel = Literal["debug", "info", "warning", "error", "fatal"]


class SpanContext:
    """Wrapper around an OpenTelemetry span.

    The wrapper is usable even when tracing is disabled, in which case every
    call does nothing.
    """

    def __init__(self, name: str, otel_span: Any = None):
        self._name = name
        self._otel_span = otel_span

    def set_attribute(self, key: str, value: Any) -> None:
        """Set an attribute on the span."""
        if self._otel_span is not None:
            self._otel_span.set_attribute(key, value)

    def set_status(self, status: Literal["ok", "error"], description: str = "") -> None:
        """Mark the span as successful or failed."""
        if self._otel_span is not None:
            code = StatusCode.OK if status == "ok" else StatusCode.ERROR
            self._otel_span.set_status(code, description)

    def record_exception(self, exception: BaseException) -> None:
        """Record a handled exception on the span."""
        if self._otel_span is not None:
            self._otel_span.record_exception(exception)


class ObservabilityFacade:
    """Single entry point for error capture, metrics and tracing."""

    def __init__(self) -> None:
        self._initialized = False
        self._sentry_enabled = False
        self._service_name = "quizgen"
        self._environment = "development"
        self._tracer: Any = None
        self._meter: Any = None
        self._counters: Dict[str, Any] = {}
        self._histograms: Dict[str, Any] = {}

    @property
    def is_initialized(self) -> bool:
        """Check if observability has been initialized."""
        return self._initialized

    def init(
        self,
        service_name: str = "quizgen",
        environment: str = "development",
        sentry_dsn: Optional[str] = None,
        traces_sample_rate: float = 0.0,
    ) -> bool:
        """Initialize error tracking, metrics and tracing.

        Calling this more than once is safe; later calls are ignored.

        Args:
            service_name: Name identifying this service in traces and metrics
            environment: Deployment environment (development, production, ...)
            sentry_dsn: Sentry DSN; error capture stays disabled without one
            traces_sample_rate: Sentry transaction sample rate

        Returns:
            True once initialized
        """
        if self._initialized:
            logger.warning("Observability already initialized, ignoring init()")
            return True

        self._service_name = service_name
        self._environment = environment

        if sentry_dsn:
            sentry_sdk.init(
                dsn=sentry_dsn,
                environment=environment,
                traces_sample_rate=traces_sample_rate,
                send_default_pii=False,
            )
            self._sentry_enabled = True
            logger.info(f"Sentry error tracking enabled (environment={environment})")

        self._tracer = trace.get_tracer(service_name)
        self._meter = metrics.get_meter(service_name)
        self._initialized = True
        return True

    def capture_error(
        self,
        exception: BaseException,
        *,
        context: Optional[Dict[str, Any]] = None,
        level: ErrorLevel = "error",
        tags: Optional[Dict[str, str]] = None,
        fingerprint: Optional[List[str]] = None,
    ) -> Optional[str]:
        """Capture an error and send it to Sentry.

        Args:
            exception: The exception to capture
            context: Additional context shown in the Sentry event
            level: Event level
            tags: Low-cardinality tags for filtering
            fingerprint: Custom grouping fingerprint

        Returns:
            Sentry event ID, or None if error capture is disabled
        """
        if not self._initialized or not self._sentry_enabled:
            logger.debug(
                f"capture_error skipped, error tracking disabled: {type(exception).__name__}"
            )
            return None

        with sentry_sdk.new_scope() as scope:
            scope.set_tag("service", self._service_name)
            if context:
                scope.set_context("additional", context)
            for key, value in (tags or {}).items():
                scope.set_tag(key, value)
            if fingerprint:
                scope.fingerprint = fingerprint
            scope.level = level
            return sentry_sdk.capture_exception(exception)

    def record_metric(
        self,
        name: str,
        value: float | int,
        *,
        labels: Optional[Dict[str, str]] = None,
        metric_type: MetricType = "counter",
        unit: Optional[str] = None,
    ) -> None:
        """Record a metric through the OpenTelemetry metrics API.

        Args:
            name: Metric name in dot notation (e.g., "quizgen.questions.validated")
            value: Increment for counters, observation for histograms
            labels: Low-cardinality labels
            metric_type: "counter" or "histogram"
            unit: Optional unit ("1" for counters, "ms" for histograms by default)
        """
        if not self._initialized or self._meter is None:
            logger.debug(f"record_metric skipped, observability not initialized: {name}")
            return

        attributes = labels or {}
        if metric_type == "counter":
            if name not in self._counters:
                self._counters[name] = self._meter.create_counter(
                    name=name, unit=unit or "1", description=f"Counter for {name}"
                )
            self._counters[name].add(value, attributes=attributes)
        elif metric_type == "histogram":
            if name not in self._histograms:
                self._histograms[name] = self._meter.create_histogram(
                    name=name, unit=unit or "ms", description=f"Histogram for {name}"
                )
            self._histograms[name].record(value, attributes=attributes)
        else:
            raise ValueError(f"Unsupported metric type: {metric_type}")

    @contextmanager
    def start_span(
        self,
        name: str,
        *,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> Iterator[SpanContext]:
        """Start a tracing span.

        Args:
            name: Span name (e.g., "quizgen.generate")
            attributes: Initial span attributes

        Yields:
            SpanContext for setting attributes and status
        """
        if not self._initialized or self._tracer is None:
            yield SpanContext(name)
            return

        with self._tracer.start_as_current_span(name, attributes=attributes) as span:
            yield SpanContext(name, otel_span=span)


observability = ObservabilityFacade()
