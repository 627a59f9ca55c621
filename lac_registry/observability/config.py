"""
OpenTelemetry Configuration

Sets up distributed tracing and structured JSON logging for the LAC registry.
"""

import json
import os
import logging
from typing import Optional
from datetime import datetime, timezone
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

SERVICE_NAME = 'lac-registry'


class StructuredFormatter(logging.Formatter):
    """Render log records as single-line JSON with the active trace context."""
    
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": SERVICE_NAME,
        }
        
        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            entry["trace_id"] = format(span_context.trace_id, "032x")
            entry["span_id"] = format(span_context.span_id, "016x")
        
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            entry.update(extra_fields)
        
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        
        return json.dumps(entry, default=str, ensure_ascii=False)


SAMPLING_RATIOS = {
    'production': 0.1,
    'staging': 0.5,
}

LOG_LEVELS = {
    'production': logging.WARNING,
    'staging': logging.INFO,
    'development': logging.DEBUG,
}


def _span_exporter(environment: str) -> Optional[SpanExporter]:
    """OTLP exporter when an endpoint is configured, console output in development."""
    endpoint = os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
    if endpoint:
        api_key = os.getenv('OTEL_API_KEY')
        headers = {"authorization": f"Bearer {api_key}"} if api_key else None
        return OTLPSpanExporter(endpoint=endpoint, headers=headers)
    if environment == 'development':
        return ConsoleSpanExporter()
    return None


def setup_observability():
    """Configure JSON logging, then OpenTelemetry tracing unless OTEL_ENABLED is false."""
    environment = os.getenv('ENVIRONMENT', 'development')
    setup_structured_logging(environment)
    
    if os.getenv('OTEL_ENABLED', 'true').lower() != 'true':
        return
    
    tracer_provider = TracerProvider(
        sampler=TraceIdRatioBased(SAMPLING_RATIOS.get(environment, 1.0)),
        resource=Resource.create({
            "service.name": SERVICE_NAME,
            "service.version": os.getenv('SERVICE_VERSION', '1.0.0'),
            "deployment.environment": environment
        })
    )
    
    exporter = _span_exporter(environment)
    if exporter is not None:
        tracer_provider.add_span_processor(BatchSpanProcessor(exporter, max_export_batch_size=512))
    
    trace.set_tracer_provider(tracer_provider)


def setup_structured_logging(environment: str):
    """Route all logging through one JSON handler at the environment's level."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logging.basicConfig(level=LOG_LEVELS.get(environment, logging.INFO), handlers=[handler], force=True)
    
    # Driver chatter
    logging.getLogger('pika').setLevel(logging.ERROR if environment == 'production' else logging.WARNING)
    logging.getLogger('pymongo').setLevel(logging.WARNING)
