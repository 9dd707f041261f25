from contextlib import contextmanager

from opentelemetry import trace

_TRACER_NAME = "panelcraft"


@contextmanager
def trace_span(name: str, **attributes):
    """Open a span on the globally configured tracer provider.

    Without an SDK provider installed this is a no-op span.
    """
    tracer = trace.get_tracer(_TRACER_NAME)
    with tracer.start_as_current_span(name) as span:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)
        yield span
