from __future__ import annotations

from contextlib import contextmanager

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

registry = CollectorRegistry(auto_describe=True)

PROMPTS_COMPOSED_TOTAL = Counter(
    "panelcraft_prompts_composed_total",
    "Prompts composed, labeled by the style guide render style.",
    ["render_style"],
    registry=registry,
)

COMPOSE_FAILURES_TOTAL = Counter(
    "panelcraft_compose_failures_total",
    "Panels that could not be composed, labeled by failure reason.",
    ["reason"],
    registry=registry,
)

PROMPT_TRUNCATIONS_TOTAL = Counter(
    "panelcraft_prompt_truncations_total",
    "Prompts truncated to a model's maximum length.",
    ["model"],
    registry=registry,
)

UNSUPPORTED_MODEL_TOTAL = Counter(
    "panelcraft_unsupported_model_total",
    "Optimization requests for models without a profile.",
    ["model"],
    registry=registry,
)

BACKEND_CALL_DURATION = Histogram(
    "panelcraft_backend_call_duration_seconds",
    "Latency of generation backend calls per model.",
    ["model"],
    registry=registry,
)

BACKEND_CALLS_TOTAL = Counter(
    "panelcraft_backend_calls_total",
    "Generation backend calls partitioned by model and status.",
    ["model", "status"],
    registry=registry,
)


def record_prompt_composed(render_style: str) -> None:
    PROMPTS_COMPOSED_TOTAL.labels(render_style=render_style).inc()


def record_compose_failure(reason: str) -> None:
    COMPOSE_FAILURES_TOTAL.labels(reason=reason).inc()


def record_truncation(model: str) -> None:
    PROMPT_TRUNCATIONS_TOTAL.labels(model=model).inc()


def record_unsupported_model(model: str) -> None:
    UNSUPPORTED_MODEL_TOTAL.labels(model=model).inc()


@contextmanager
def track_backend_call(model: str):
    with BACKEND_CALL_DURATION.labels(model=model).time():
        try:
            yield
        except Exception:
            BACKEND_CALLS_TOTAL.labels(model=model, status="error").inc()
            raise
    BACKEND_CALLS_TOTAL.labels(model=model, status="success").inc()


def get_metrics_payload() -> bytes:
    return generate_latest(registry)
