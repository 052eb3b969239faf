"""Infrastructure layer — observability for the spectrogram engine.

Modules:
    metrics     Prometheus counters and latency histograms.
"""
