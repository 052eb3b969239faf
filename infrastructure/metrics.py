"""Prometheus metrics for the spectrogram engine.

Metrics:
    spectro_samples_ingested_total     Samples pushed into the windower
    spectro_spectra_computed_total     Spectra appended to a spectrogram
    spectro_decode_errors_total        Decoder failures treated as end of stream
    spectro_sources_opened_total       Audio sources opened by the engine
    spectro_decode_step_seconds        Histogram of one bounded decode step
    spectro_render_seconds             Histogram of full-image renders

Usage::

    from infrastructure.metrics import LatencyTimer, record_render

    with LatencyTimer() as t:
        image = spectrogram.render(800, 400)
    record_render(latency_seconds=t.elapsed)
"""

from __future__ import annotations

import logging
import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

_REGISTRY = CollectorRegistry()

samples_ingested_total = Counter(
    "spectro_samples_ingested_total",
    "Decoded samples pushed into the windower",
    registry=_REGISTRY,
)

spectra_computed_total = Counter(
    "spectro_spectra_computed_total",
    "Spectra appended to a spectrogram",
    registry=_REGISTRY,
)

decode_errors_total = Counter(
    "spectro_decode_errors_total",
    "Decoder failures handled as end of stream",
    registry=_REGISTRY,
)

sources_opened_total = Counter(
    "spectro_sources_opened_total",
    "Audio sources opened by the engine",
    registry=_REGISTRY,
)

decode_step_seconds = Histogram(
    "spectro_decode_step_seconds",
    "Wall-clock time of one bounded decode step",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
    registry=_REGISTRY,
)

render_seconds = Histogram(
    "spectro_render_seconds",
    "Wall-clock time to render a full intensity image",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
    registry=_REGISTRY,
)

logger.debug("Spectrogram metrics registry initialized")


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def record_samples(count: int) -> None:
    """Add `count` decoded samples."""
    if count > 0:
        samples_ingested_total.inc(count)


def record_spectra(count: int) -> None:
    """Add `count` computed spectra."""
    if count > 0:
        spectra_computed_total.inc(count)


def record_decode_error() -> None:
    decode_errors_total.inc()


def record_source_opened() -> None:
    sources_opened_total.inc()


def record_decode_step(*, latency_seconds: float) -> None:
    decode_step_seconds.observe(latency_seconds)


def record_render(*, latency_seconds: float) -> None:
    """Record one full-image render.

    Args:
        latency_seconds: Wall-clock render time in seconds.
    """
    render_seconds.observe(latency_seconds)


def get_metric_value(name: str) -> float:
    """Current value of a sample in the registry (0.0 if never recorded)."""
    value = _REGISTRY.get_sample_value(name)
    return value if value is not None else 0.0


def get_metrics_response() -> tuple[bytes, str]:
    """Generate Prometheus text exposition format.

    Returns:
        Tuple of (body_bytes, content_type_string).
    """
    return generate_latest(_REGISTRY), CONTENT_TYPE_LATEST


class LatencyTimer:
    """Context manager for measuring latency.

    Usage::

        with LatencyTimer() as t:
            engine.decode_step()
        record_decode_step(latency_seconds=t.elapsed)
    """

    def __init__(self) -> None:
        """Initialize timer."""
        self._start: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> LatencyTimer:
        """Start timing."""
        self._start = time.perf_counter()
        return self

    def __exit__(self, *_: object) -> None:
        """Stop timing and record elapsed."""
        self.elapsed = time.perf_counter() - self._start
