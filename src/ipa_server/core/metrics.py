"""
Prometheus Metrics for ipa-server.

Metrics Exposed:
    ipa_requests_total               - Counter of synthesis requests by status
    ipa_synthesis_duration_seconds   - Histogram of provider call latency
    ipa_rate_limited_total           - Counter of requests rejected by the rate limiter
    ipa_voice_languages              - Gauge of generic language keys with voices
    ipa_voices                       - Gauge of distinct voices in the inventory

Usage:
    from ipa_server.core.metrics import metrics

    metrics.record_request("success", duration=0.4)
    metrics.record_rate_limited()
    content, content_type = metrics.get_metrics_response()

Prometheus Scrape Config Example:
    scrape_configs:
      - job_name: 'ipa-server'
        static_configs:
          - targets: ['localhost:8000']
        metrics_path: '/metrics'
"""
from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


class ServiceMetrics:
    """
    Metric collection for the speech service.

    Uses a private CollectorRegistry so several app instances (tests,
    CLI) can coexist in one process without duplicate registration.
    All Prometheus metric operations are thread-safe.
    """

    def __init__(self) -> None:
        self._registry = CollectorRegistry()

        self._requests_total = Counter(
            "ipa_requests_total",
            "Total synthesis requests",
            ["status"],
            registry=self._registry,
        )
        self._synthesis_duration = Histogram(
            "ipa_synthesis_duration_seconds",
            "Time until the provider returned an audio stream",
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
            registry=self._registry,
        )
        self._rate_limited_total = Counter(
            "ipa_rate_limited_total",
            "Requests rejected by the rate limiter",
            registry=self._registry,
        )
        self._voice_languages = Gauge(
            "ipa_voice_languages",
            "Generic language keys with at least one voice",
            registry=self._registry,
        )
        self._voices = Gauge(
            "ipa_voices",
            "Distinct voices in the inventory",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_request(self, status: str, duration: float | None = None) -> None:
        """
        Record a finished synthesis request.

        Args:
            status: "success", "invalid_input" or "synthesis_failed".
            duration: Provider call latency in seconds (successful calls only).
        """
        self._requests_total.labels(status=status).inc()
        if duration is not None:
            self._synthesis_duration.observe(duration)

    def record_rate_limited(self) -> None:
        self._rate_limited_total.inc()

    def set_inventory(self, languages: int, voices: int) -> None:
        """Publish the size of the voice inventory built at startup."""
        self._voice_languages.set(languages)
        self._voices.set(voices)

    def get_metrics_response(self) -> tuple[bytes, str]:
        """
        Get metrics in Prometheus text format.

        Returns:
            Tuple of (content_bytes, content_type)
        """
        return generate_latest(self._registry), CONTENT_TYPE_LATEST


# Global singleton: from ipa_server.core.metrics import metrics
metrics = ServiceMetrics()
