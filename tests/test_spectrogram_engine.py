"""
Tests for ingestion/spectrogram_engine.py — decode → window → store → render.

Uses a tiny analysis config (8-sample windows, hop 4, 4-sample decoder
chunks) and a mock librosa module so every spectrum count can be worked
out by hand.
"""

import logging

import numpy as np
import pytest
from conftest import make_mock_librosa

from core.spectral.config import AnalysisConfig
from core.spectral.spectrum import SpectrumExtractor
from core.spectral.window import RECTANGULAR
from infrastructure.metrics import get_metric_value
from ingestion.spectrogram_engine import DecodeProgress, SpectrogramEngine

TINY = AnalysisConfig(window_length=8, hop=4, decode_block_length=4, blocks_per_step=2)


def _noise_blocks(count: int, length: int = 4, seed: int = 7) -> list[np.ndarray]:
    rng = np.random.default_rng(seed)
    return [rng.uniform(-1.0, 1.0, size=length).astype(np.float32) for _ in range(count)]


def _engine(blocks, *, sr: int = 8, duration: float | None = None) -> SpectrogramEngine:
    return SpectrogramEngine(TINY, librosa=make_mock_librosa(blocks, sr=sr, duration=duration))


# ---------------------------------------------------------------------------
# DecodeProgress
# ---------------------------------------------------------------------------


class TestDecodeProgress:
    def test_fraction_known_length(self):
        assert DecodeProgress(samples_decoded=25, total_samples=100).fraction == 0.25

    def test_fraction_unknown_length(self):
        assert DecodeProgress(samples_decoded=25).fraction is None

    def test_fraction_finished(self):
        assert DecodeProgress(samples_decoded=25, total_samples=100, finished=True).fraction == 1.0

    def test_fraction_capped(self):
        assert DecodeProgress(samples_decoded=120, total_samples=100).fraction == 1.0


# ---------------------------------------------------------------------------
# File sources
# ---------------------------------------------------------------------------


class TestOpen:
    def test_nothing_open(self):
        engine = SpectrogramEngine(TINY, librosa=make_mock_librosa())
        with pytest.raises(RuntimeError, match="No audio source"):
            _ = engine.spectrogram
        with pytest.raises(RuntimeError):
            engine.render(4, 4)
        with pytest.raises(RuntimeError):
            engine.decode_step()

    def test_open_reports_info(self, audio_file):
        engine = _engine([], sr=44100, duration=2.0)
        info = engine.open(audio_file)
        assert info.sample_rate == 44100
        assert info.total_samples == 88200
        assert engine.info is info
        assert engine.sample_rate == 44100
        assert engine.progress == DecodeProgress(total_samples=88200)

    def test_open_logs_file_name(self, audio_file, caplog):
        engine = _engine([], duration=1.0)
        with caplog.at_level(logging.INFO, logger="ingestion.spectrogram_engine"):
            engine.open(audio_file)
        assert "Opened track.wav" in caplog.text

    def test_open_counts_source(self, audio_file):
        before = get_metric_value("spectro_sources_opened_total")
        _engine([]).open(audio_file)
        assert get_metric_value("spectro_sources_opened_total") - before == 1

    def test_failed_open_keeps_previous_source(self, audio_file, tmp_path):
        engine = _engine(_noise_blocks(5))
        engine.open(audio_file)
        engine.decode_all()
        with pytest.raises(FileNotFoundError):
            engine.open(tmp_path / "missing.wav")
        assert engine.spectrogram.spectrum_count() == 4
        assert engine.info is not None and engine.info.path == audio_file

    def test_reopen_starts_fresh(self, audio_file):
        engine = _engine(_noise_blocks(5))
        engine.open(audio_file)
        engine.decode_all()
        engine.open(audio_file)
        assert engine.spectrogram.spectrum_count() == 0
        assert not engine.progress.finished


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


class TestDecodeSteps:
    def test_decode_all(self, audio_file):
        """20 samples → windows at 0, 4, 8, 12; the last 4 are already covered."""
        engine = _engine(_noise_blocks(5))
        engine.open(audio_file)
        progress = engine.decode_all()
        assert progress.finished
        assert progress.error is None
        assert progress.samples_decoded == 20
        assert progress.spectra == 4
        assert engine.spectrogram.spectrum_count() == 4

    def test_steps_are_bounded(self, audio_file):
        engine = _engine(_noise_blocks(5))
        engine.open(audio_file)

        assert engine.decode_step() is True
        assert engine.progress.samples_decoded == 8
        assert engine.progress.spectra == 1

        assert engine.decode_step() is True
        assert engine.progress.samples_decoded == 16
        assert engine.progress.spectra == 3

        assert engine.decode_step() is False
        assert engine.progress.finished

    def test_max_blocks_override(self, audio_file):
        engine = _engine(_noise_blocks(5))
        engine.open(audio_file)
        engine.decode_step(max_blocks=4)
        assert engine.progress.samples_decoded == 16

    def test_step_after_finish_is_noop(self, audio_file):
        engine = _engine(_noise_blocks(2))
        engine.open(audio_file)
        engine.decode_all()
        count = engine.spectrogram.spectrum_count()
        assert engine.decode_step() is False
        assert engine.spectrogram.spectrum_count() == count

    def test_trailing_samples_are_padded(self, audio_file):
        """6 samples: shorter than a window, analyzed as one padded window."""
        engine = _engine([np.ones(4, dtype=np.float32), np.ones(2, dtype=np.float32)])
        engine.open(audio_file)
        assert engine.decode_all().spectra == 1

    def test_spectra_match_direct_extraction(self, audio_file):
        blocks = _noise_blocks(4)
        engine = _engine(blocks)
        engine.open(audio_file)
        engine.decode_all()
        samples = np.concatenate(blocks)
        extract = SpectrumExtractor(8)
        for i in range(engine.spectrogram.spectrum_count()):
            np.testing.assert_array_equal(
                engine.spectrogram.get_spectrum(i), extract(samples[i * 4 : i * 4 + 8])
            )

    def test_window_choice_reaches_extractor(self, audio_file):
        blocks = _noise_blocks(2)
        engine = SpectrogramEngine(
            TINY, window=RECTANGULAR, librosa=make_mock_librosa(blocks)
        )
        engine.open(audio_file)
        engine.decode_all()
        expected = SpectrumExtractor(8, window=RECTANGULAR)(np.concatenate(blocks))
        np.testing.assert_array_equal(engine.spectrogram.get_spectrum(0), expected)


class TestDecodeErrors:
    def _failing_engine(self, good_blocks: int) -> SpectrogramEngine:
        blocks = _noise_blocks(good_blocks)

        def failing():
            yield from blocks
            raise Exception("corrupt frame")

        return _engine(failing)

    def test_error_ends_stream_and_keeps_spectra(self, audio_file):
        engine = self._failing_engine(3)
        engine.open(audio_file)
        progress = engine.decode_all()
        assert progress.finished
        assert "corrupt frame" in progress.error
        # 12 samples: windows at 0 and 4; the tail [8, 12) is already covered.
        assert progress.spectra == 2

    def test_error_is_logged_and_counted(self, audio_file, caplog):
        engine = self._failing_engine(1)
        engine.open(audio_file)
        before = get_metric_value("spectro_decode_errors_total")
        with caplog.at_level(logging.ERROR, logger="ingestion.spectrogram_engine"):
            engine.decode_all()
        assert "Decoding stopped early" in caplog.text
        assert get_metric_value("spectro_decode_errors_total") - before == 1

    def test_error_does_not_propagate(self, audio_file):
        engine = self._failing_engine(0)
        engine.open(audio_file)
        assert engine.decode_step() is False
        assert engine.progress.spectra == 0


# ---------------------------------------------------------------------------
# Pushed sources
# ---------------------------------------------------------------------------


class TestPushedSamples:
    def test_begin_feed_finish(self):
        engine = SpectrogramEngine(TINY, librosa=make_mock_librosa())
        engine.begin(sample_rate=8)
        assert engine.feed(np.ones(10, dtype=np.float32)) == 1
        assert engine.feed(np.ones(3, dtype=np.float32)) == 1
        assert engine.finish() == 1
        assert engine.progress.finished
        assert engine.progress.samples_decoded == 13
        assert engine.spectrogram.spectrum_count() == 3

    def test_finish_twice_is_noop(self):
        engine = SpectrogramEngine(TINY)
        engine.begin(sample_rate=8)
        engine.feed(np.ones(3))
        assert engine.finish() == 1
        assert engine.finish() == 0

    def test_feed_after_finish_raises(self):
        engine = SpectrogramEngine(TINY)
        engine.begin(sample_rate=8)
        engine.finish()
        with pytest.raises(RuntimeError, match="already finished"):
            engine.feed(np.ones(4))

    def test_begin_rejects_bad_sample_rate(self):
        with pytest.raises(ValueError, match="sample_rate"):
            SpectrogramEngine(TINY).begin(sample_rate=0)

    def test_decode_step_needs_file_source(self):
        engine = SpectrogramEngine(TINY)
        engine.begin(sample_rate=8)
        with pytest.raises(RuntimeError, match="open"):
            engine.decode_step()

    def test_feed_counts_samples(self):
        engine = SpectrogramEngine(TINY)
        engine.begin(sample_rate=8)
        before = get_metric_value("spectro_samples_ingested_total")
        engine.feed(np.zeros(9))
        assert get_metric_value("spectro_samples_ingested_total") - before == 9


# ---------------------------------------------------------------------------
# Background decoding
# ---------------------------------------------------------------------------


class TestBackgroundDecoding:
    def test_start_and_join(self, audio_file):
        engine = _engine(_noise_blocks(50))
        engine.open(audio_file)
        engine.start()
        engine.join(timeout=10)
        assert engine.progress.finished
        assert engine.spectrogram.spectrum_count() == (200 - 8) // 4 + 1

    def test_start_without_file_raises(self):
        engine = SpectrogramEngine(TINY)
        engine.begin(sample_rate=8)
        with pytest.raises(RuntimeError, match="open"):
            engine.start()

    def test_stop_without_thread_is_noop(self):
        SpectrogramEngine(TINY).stop(timeout=1)

    def test_render_while_decoding(self, audio_file):
        engine = _engine(_noise_blocks(400))
        engine.open(audio_file)
        engine.start()
        try:
            for _ in range(5):
                image = engine.render(16, 8)
                assert image.shape == (8, 16)
        finally:
            engine.stop(timeout=10)
        assert engine.spectrogram.spectrum_count() == engine.progress.spectra


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRender:
    def test_partial_decode_keeps_full_time_axis(self, audio_file):
        """8 of 64 samples decoded: only the first quarter can be lit."""
        engine = _engine(_noise_blocks(16), duration=8.0)
        engine.open(audio_file)
        engine.decode_step()
        image = engine.render(4, 2)
        assert image[:, 0].max() > 0.0
        np.testing.assert_array_equal(image[:, 1:], 0.0)

    def test_finished_render_uses_analyzed_span(self, audio_file):
        engine = _engine(_noise_blocks(16), duration=8.0)
        engine.open(audio_file)
        engine.decode_all()
        image = engine.render(4, 2)
        assert (image.max(axis=0) > 0.0).all()

    def test_render_records_latency(self, audio_file):
        engine = _engine(_noise_blocks(4))
        engine.open(audio_file)
        engine.decode_all()
        before = get_metric_value("spectro_render_seconds_count")
        engine.render(4, 4)
        assert get_metric_value("spectro_render_seconds_count") - before == 1

    def test_frequency_ticks(self, audio_file):
        engine = SpectrogramEngine(librosa=make_mock_librosa(sr=48000, duration=1.0))
        engine.open(audio_file)
        ticks = engine.frequency_ticks()
        assert len(ticks) == 10
        assert ticks[-1].label == "24.0 kHz"
