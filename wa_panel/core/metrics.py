"""Prometheus metrics for the panel."""

import logging
from contextlib import contextmanager

from prometheus_client import Counter, Histogram

from wa_panel.config import get_settings

logger = logging.getLogger(__name__)


MONITORING_ENABLED = get_settings().enable_monitoring

if MONITORING_ENABLED:
    logger.info("Prometheus metrics enabled (ENABLE_MONITORING=true)")

    # Remote API call tracking
    API_CALLS = Counter(
        "api_calls_total",
        "Calls to the remote business API",
        ["endpoint", "status"],  # status: success | error | unauthorized
    )

    API_DURATION = Histogram(
        "api_call_duration_seconds",
        "Remote API call duration in seconds",
        ["endpoint"],
        buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
    )

    # Chat relay actions
    RELAY_ACTIONS = Counter(
        "relay_actions_total",
        "Chat relay send/close actions",
        ["action", "outcome"],  # outcome: ok | rejected | failed
    )

    ERROR_COUNT = Counter(
        "errors_total",
        "Total errors by type",
        ["error_type"],
    )
else:
    logger.info("Prometheus metrics disabled (ENABLE_MONITORING=false)")

    class _NoOpMetric:
        """No-op metric that does nothing."""

        def labels(self, **kwargs):  # noqa: ARG002
            return self

        def inc(self, amount=1):  # noqa: ARG002
            pass

        def time(self):
            @contextmanager
            def _noop():
                yield

            return _noop()

    API_CALLS = _NoOpMetric()
    API_DURATION = _NoOpMetric()
    RELAY_ACTIONS = _NoOpMetric()
    ERROR_COUNT = _NoOpMetric()
