"""Tests for infrastructure/metrics.py — Prometheus counter recording.

Verifies that:
- All public record_*() helpers increment the correct counter
- Non-positive counts are ignored
- LatencyTimer measures elapsed time correctly
- The exposition output names every metric

Counters are cumulative within the module's registry and cannot be reset,
so every assertion compares a value before and after the call.
"""

from __future__ import annotations

import time

import pytest

from infrastructure import metrics as metrics_module
from infrastructure.metrics import LatencyTimer, get_metric_value


def _delta(name: str, action) -> float:
    before = get_metric_value(name)
    action()
    return get_metric_value(name) - before


# ---------------------------------------------------------------------------
# Counters
# ---------------------------------------------------------------------------


class TestCounters:
    def test_record_samples(self) -> None:
        delta = _delta(
            "spectro_samples_ingested_total", lambda: metrics_module.record_samples(4096)
        )
        assert delta == 4096

    @pytest.mark.parametrize("count", [0, -3])
    def test_record_samples_ignores_non_positive(self, count) -> None:
        delta = _delta(
            "spectro_samples_ingested_total", lambda: metrics_module.record_samples(count)
        )
        assert delta == 0

    def test_record_spectra(self) -> None:
        delta = _delta("spectro_spectra_computed_total", lambda: metrics_module.record_spectra(3))
        assert delta == 3

    def test_record_spectra_ignores_zero(self) -> None:
        delta = _delta("spectro_spectra_computed_total", lambda: metrics_module.record_spectra(0))
        assert delta == 0

    def test_record_decode_error(self) -> None:
        assert _delta("spectro_decode_errors_total", metrics_module.record_decode_error) == 1

    def test_record_source_opened(self) -> None:
        assert _delta("spectro_sources_opened_total", metrics_module.record_source_opened) == 1

    def test_burst_accumulates(self) -> None:
        def burst() -> None:
            for _ in range(50):
                metrics_module.record_spectra(2)

        assert _delta("spectro_spectra_computed_total", burst) == 100


# ---------------------------------------------------------------------------
# Histograms
# ---------------------------------------------------------------------------


class TestHistograms:
    def test_record_decode_step(self) -> None:
        delta = _delta(
            "spectro_decode_step_seconds_count",
            lambda: metrics_module.record_decode_step(latency_seconds=0.02),
        )
        assert delta == 1

    def test_record_render_sums_latency(self) -> None:
        delta = _delta(
            "spectro_render_seconds_sum",
            lambda: metrics_module.record_render(latency_seconds=0.25),
        )
        assert delta == pytest.approx(0.25)

    def test_unknown_metric_reads_zero(self) -> None:
        assert get_metric_value("spectro_does_not_exist_total") == 0.0


# ---------------------------------------------------------------------------
# Exposition
# ---------------------------------------------------------------------------


class TestMetricsResponse:
    def test_body_names_every_metric(self) -> None:
        body, content_type = metrics_module.get_metrics_response()
        text = body.decode()
        for name in (
            "spectro_samples_ingested_total",
            "spectro_spectra_computed_total",
            "spectro_decode_errors_total",
            "spectro_sources_opened_total",
            "spectro_decode_step_seconds",
            "spectro_render_seconds",
        ):
            assert name in text
        assert content_type.startswith("text/plain")


# ---------------------------------------------------------------------------
# LatencyTimer
# ---------------------------------------------------------------------------


class TestLatencyTimer:
    def test_measures_elapsed(self) -> None:
        with LatencyTimer() as t:
            time.sleep(0.01)
        assert t.elapsed >= 0.009

    def test_elapsed_zero_before_use(self) -> None:
        assert LatencyTimer().elapsed == 0.0

    def test_records_even_when_body_raises(self) -> None:
        timer = LatencyTimer()
        with pytest.raises(ZeroDivisionError):
            with timer:
                1 / 0
        assert timer.elapsed > 0.0
