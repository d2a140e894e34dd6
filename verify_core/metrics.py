"""
Prometheus Metrics
==================
Counters for code issuance, verification outcomes and abuse controls.
"""

from prometheus_client import CollectorRegistry, Counter, generate_latest, CONTENT_TYPE_LATEST

# Custom registry so embedding services can expose or merge it explicitly
VERIFY_REGISTRY = CollectorRegistry()

CODES_ISSUED = Counter(
    name="verify_codes_issued_total",
    documentation="Verification codes issued",
    labelnames=["channel", "purpose"],
    registry=VERIFY_REGISTRY,
)

VERIFICATION_OUTCOMES = Counter(
    name="verify_checks_total",
    documentation="Verification attempts by outcome",
    labelnames=["purpose", "outcome"],
    registry=VERIFY_REGISTRY,
)

RATE_LIMITED = Counter(
    name="verify_rate_limited_total",
    documentation="Requests rejected by a rate limit",
    labelnames=["scope"],
    registry=VERIFY_REGISTRY,
)

DELIVERY_FAILURES = Counter(
    name="verify_delivery_failures_total",
    documentation="Codes the channel sender failed to deliver",
    labelnames=["channel"],
    registry=VERIFY_REGISTRY,
)


def record_issued(channel: str, purpose: str) -> None:
    CODES_ISSUED.labels(channel=channel, purpose=purpose).inc()


def record_outcome(purpose: str, outcome: str) -> None:
    VERIFICATION_OUTCOMES.labels(purpose=purpose, outcome=outcome).inc()


def record_rate_limited(scope: str) -> None:
    RATE_LIMITED.labels(scope=scope).inc()


def record_delivery_failure(channel: str) -> None:
    DELIVERY_FAILURES.labels(channel=channel).inc()


def get_metrics_text() -> bytes:
    """Render the registry in the Prometheus text format."""
    return generate_latest(VERIFY_REGISTRY)


__all__ = [
    "VERIFY_REGISTRY",
    "CONTENT_TYPE_LATEST",
    "record_issued",
    "record_outcome",
    "record_rate_limited",
    "record_delivery_failure",
    "get_metrics_text",
]
