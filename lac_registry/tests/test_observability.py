# SPDX-License-Identifier: Apache-2.0

"""
Tests for structured logging and tracing setup.
"""

import json
import logging
import sys
from unittest.mock import patch

from opentelemetry.sdk.trace import TracerProvider

from lac_registry.observability import StructuredFormatter, setup_observability, setup_structured_logging


def _record(message="Child create completed", level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="lac_registry.services.children",
        level=level,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    """Test JSON log rendering."""
    
    def setup_method(self):
        self.formatter = StructuredFormatter()
    
    def test_basic_fields(self):
        entry = json.loads(self.formatter.format(_record()))
        
        assert entry["level"] == "INFO"
        assert entry["logger"] == "lac_registry.services.children"
        assert entry["message"] == "Child create completed"
        assert entry["service"] == "lac-registry"
        assert "timestamp" in entry
        assert "trace_id" not in entry
    
    def test_extra_fields_merged(self):
        record = _record(extra_fields={"child_id": "child-123", "operation": "create"})
        
        entry = json.loads(self.formatter.format(record))
        
        assert entry["child_id"] == "child-123"
        assert entry["operation"] == "create"
    
    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record(level=logging.ERROR)
            record.exc_info = sys.exc_info()
        
        entry = json.loads(self.formatter.format(record))
        
        assert "ValueError: boom" in entry["exception"]
    
    def test_trace_context_from_active_span(self):
        tracer = TracerProvider().get_tracer(__name__)
        
        with tracer.start_as_current_span("children.create") as span:
            entry = json.loads(self.formatter.format(_record()))
            context = span.get_span_context()
        
        assert entry["trace_id"] == format(context.trace_id, "032x")
        assert entry["span_id"] == format(context.span_id, "016x")


class TestSetup:
    """Test logging and tracing initialisation."""
    
    def test_structured_logging_levels(self):
        with patch('lac_registry.observability.config.logging.basicConfig') as basic_config:
            setup_structured_logging('production')
        
        kwargs = basic_config.call_args.kwargs
        assert kwargs['level'] == logging.WARNING
        assert kwargs['force'] is True
        assert isinstance(kwargs['handlers'][0].formatter, StructuredFormatter)
    
    def test_tracing_disabled(self):
        with patch.dict('os.environ', {'ENVIRONMENT': 'test', 'OTEL_ENABLED': 'false'}), \
                patch('lac_registry.observability.config.setup_structured_logging') as setup_logging, \
                patch('lac_registry.observability.config.trace.set_tracer_provider') as set_provider:
            setup_observability()
        
        setup_logging.assert_called_once_with('test')
        assert not set_provider.called
    
    def test_tracing_enabled(self):
        with patch.dict('os.environ', {'ENVIRONMENT': 'staging', 'OTEL_ENABLED': 'true'}), \
                patch('lac_registry.observability.config.setup_structured_logging'), \
                patch('lac_registry.observability.config.trace.set_tracer_provider') as set_provider:
            setup_observability()
        
        provider = set_provider.call_args.args[0]
        assert isinstance(provider, TracerProvider)
        assert provider.resource.attributes["service.name"] == "lac-registry"
