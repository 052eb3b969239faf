"""CLI script: decode an audio file and save its spectrogram image.

Usage:
    # Intensity image (H×W float32 in [0, 1]) as .npy:
    python scripts/render_spectrogram.py track.flac --output track.npy

    # Colour image (H×W×3 uint8, magma colormap):
    python scripts/render_spectrogram.py track.flac --rgb --output track_rgb.npy

    # Shorter windows for better time resolution:
    python scripts/render_spectrogram.py track.wav --window-length 2048 --hop 1024

Output:
    numpy array written with numpy.save(); frequency axis ticks logged.

Environment variables read (also from a .env file):
    SPECTRO_WIDTH          — default: 1200
    SPECTRO_HEIGHT         — default: 600
    SPECTRO_WINDOW_LENGTH  — default: 8192
    SPECTRO_HOP            — default: 4096
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np  # noqa: E402
from dotenv import load_dotenv  # noqa: E402

from core.spectral.colormap import to_rgb  # noqa: E402
from core.spectral.config import AnalysisConfig  # noqa: E402
from core.spectral.window import WINDOWS  # noqa: E402
from ingestion.spectrogram_engine import SpectrogramEngine  # noqa: E402

load_dotenv()

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Render the spectrogram of an audio file to a numpy array."
    )
    parser.add_argument("audio", type=str, help="Path to an audio file (wav, flac, mp3, ...).")
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        metavar="PATH",
        help="Destination .npy file. Defaults to the audio path with a .npy suffix.",
    )
    parser.add_argument(
        "--width", type=int, default=int(os.getenv("SPECTRO_WIDTH", "1200")), help="Columns."
    )
    parser.add_argument(
        "--height", type=int, default=int(os.getenv("SPECTRO_HEIGHT", "600")), help="Rows."
    )
    parser.add_argument(
        "--window-length",
        type=int,
        default=int(os.getenv("SPECTRO_WINDOW_LENGTH", "8192")),
        metavar="N",
        help="Samples per analysis window (power of two).",
    )
    parser.add_argument(
        "--hop",
        type=int,
        default=int(os.getenv("SPECTRO_HOP", "4096")),
        metavar="N",
        help="Samples between window starts (less than the window length).",
    )
    parser.add_argument(
        "--window",
        choices=sorted(WINDOWS),
        default="hann",
        help="Window function applied before the transform.",
    )
    parser.add_argument(
        "--rgb",
        action="store_true",
        default=False,
        help="Save a magma-coloured uint8 RGB image instead of raw intensities.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        config = AnalysisConfig(window_length=args.window_length, hop=args.hop)
    except ValueError as exc:
        logger.error("Invalid analysis settings: %s", exc)
        return 2

    engine = SpectrogramEngine(config, window=WINDOWS[args.window])
    try:
        engine.open(args.audio)
    except (FileNotFoundError, ValueError, RuntimeError) as exc:
        logger.error("%s", exc)
        return 1

    progress = engine.decode_all()
    if progress.error:
        logger.warning("Decoding stopped early, rendering what was decoded: %s", progress.error)

    image = engine.render(args.width, args.height)
    if args.rgb:
        image = to_rgb(image)

    output = Path(args.output) if args.output else Path(args.audio).with_suffix(".npy")
    output.parent.mkdir(parents=True, exist_ok=True)
    np.save(output, image)

    logger.info(
        "Saved %s array %s to %s (%d spectra)",
        image.dtype,
        image.shape,
        output,
        progress.spectra,
    )
    for tick in engine.frequency_ticks():
        logger.info("  %5.1f%%  %s", tick.position * 100.0, tick.label)
    return 0


if __name__ == "__main__":
    sys.exit(main())
