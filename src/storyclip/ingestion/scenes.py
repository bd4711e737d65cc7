"""Pixel-difference scene detection and uniform frame extraction.

Both samplers walk a ``MediaDecoder`` timeline with one blocking
seek-and-decode per step, in increasing timestamp order.  They return the
complete list on success; on a decode failure or cancellation they raise
and no partial list is returned.
"""

from __future__ import annotations

import base64
import logging
import math
import threading
from typing import Callable

import cv2
import numpy as np

from storyclip.errors import (
    DecodeError,
    DetectionCancelledError,
    InvalidInputError,
    ResourceUnavailableError,
)
from storyclip.ingestion.decoder import MediaDecoder
from storyclip.models import ClipWindow, Scene

logger = logging.getLogger(__name__)

# Scene-detection cadence in media seconds (seek-driven, not wall clock).
SAMPLE_STEP_S = 0.1

# Per-channel absolute difference (0-255) above which a pixel counts as changed.
CHANNEL_THRESHOLD = 30

# Every PIXEL_STRIDE-th pixel of the flattened raster is compared.
PIXEL_STRIDE = 4

JPEG_QUALITY = 0.8

_DATA_URI_PREFIX = "data:image/jpeg;base64,"
_EPSILON = 1e-6


class CancelToken:
    """Cooperative cancellation flag checked once per sampling step."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def pixel_difference(current: np.ndarray, previous: np.ndarray | None) -> float:
    """Return the percentage of sampled pixels that changed between frames.

    Every 4th pixel is compared on its first three channels; a pixel has
    changed when any channel differs by more than ``CHANNEL_THRESHOLD``.
    The count is scaled against ``total_pixels / 4``.  With no previous
    frame the score is 100.

    Note: the denominator is ``total_pixels / 4`` rather than the exact
    number of sampled pixels (``ceil(total_pixels / 4)``).  It is kept as
    is because changing it shifts which frames cross the threshold.
    """
    if previous is None:
        return 100.0
    if current.shape != previous.shape:
        raise ValueError(f"frame shapes differ: {current.shape} vs {previous.shape}")

    total_pixels = current.shape[0] * current.shape[1]
    if total_pixels == 0:
        return 0.0

    channels = current.shape[2] if current.ndim == 3 else 1
    cur = current.reshape(-1, channels)[::PIXEL_STRIDE, :3].astype(np.int16)
    prev = previous.reshape(-1, channels)[::PIXEL_STRIDE, :3].astype(np.int16)

    changed = np.any(np.abs(cur - prev) > CHANNEL_THRESHOLD, axis=1)
    return float(np.count_nonzero(changed)) / (total_pixels / PIXEL_STRIDE) * 100.0


def encode_frame(frame: np.ndarray, quality: float = JPEG_QUALITY) -> str:
    """Encode a BGR raster as a ``data:image/jpeg;base64,...`` string."""
    ok, buf = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, int(round(quality * 100))])
    if not ok:
        raise ValueError("cv2.imencode could not encode the frame as JPEG")
    return _DATA_URI_PREFIX + base64.b64encode(buf.tobytes()).decode("ascii")


def decode_frame_data(frame_data: str) -> bytes:
    """Return the JPEG bytes held in a frame data URI."""
    if not frame_data.startswith(_DATA_URI_PREFIX):
        raise ValueError("frame data is not a base64 JPEG data URI")
    return base64.b64decode(frame_data[len(_DATA_URI_PREFIX):])


def detect_scenes(
    decoder: MediaDecoder,
    sensitivity_threshold: float = 20.0,
    start_s: float = 0.0,
    end_s: float | None = None,
    cancel: CancelToken | None = None,
    progress_callback: Callable[[int, int], None] | None = None,
) -> list[Scene]:
    """Emit a scene wherever a sampled frame differs enough from the last one.

    Parameters
    ----------
    decoder:
        An open decoder; used exclusively by this call.
    sensitivity_threshold:
        Percentage (0-100) of sampled pixels that must change for a frame
        to be emitted.  Lower values emit more scenes.
    start_s, end_s:
        Clip window.  *end_s* defaults to, and is clamped to, the media
        duration.
    cancel:
        Optional token checked before every step.
    progress_callback:
        Optional ``(current_step, total_steps)`` callable.

    Returns
    -------
    list[Scene]
        Scenes in strictly increasing timestamp order, each at
        ``start_s + k * SAMPLE_STEP_S``.  The first sample always scores
        100, so it is emitted whenever the threshold is below 100.

    Raises
    ------
    InvalidInputError
        If the window is empty, negative, or starts past the media end.
    ResourceUnavailableError
        If the decoder reports no dimensions.
    DecodeError
        If any seek or decode fails.
    DetectionCancelledError
        If *cancel* is triggered mid-scan.
    """
    stop_s = _clamp_window(decoder, start_s, end_s)
    total_steps = int(math.floor((stop_s - start_s) / SAMPLE_STEP_S + _EPSILON)) + 1

    scenes: list[Scene] = []
    previous: np.ndarray | None = None
    for step in range(total_steps):
        current_s = round(start_s + step * SAMPLE_STEP_S, 6)
        _check_cancelled(cancel, current_s)

        frame = _decode(decoder, current_s)
        score = pixel_difference(frame, previous)
        if score > sensitivity_threshold:
            scenes.append(Scene(timestamp_s=current_s, frame_data=encode_frame(frame)))
            logger.debug("Scene at %.1fs (difference %.1f%%)", current_s, score)

        previous = frame
        if progress_callback is not None:
            progress_callback(step + 1, total_steps)

    logger.info(
        "Detected %d scenes in %.1fs-%.1fs (%d samples, threshold %.1f%%)",
        len(scenes), start_s, stop_s, total_steps, sensitivity_threshold,
    )
    return scenes


def extract_frames(
    decoder: MediaDecoder,
    start_s: float,
    end_s: float,
    interval_s: float = 5.0,
    cancel: CancelToken | None = None,
) -> list[Scene]:
    """Grab one frame at the end of every full *interval_s* inside the window.

    A closing frame at *end_s* is added when the last interval frame does
    not already sit on it, so ``floor((end - start) / interval)`` frames
    are emitted plus one when the window is not an exact multiple of the
    interval.  No difference scoring is applied.
    """
    if interval_s <= 0:
        raise InvalidInputError(f"frame interval must be positive, got {interval_s}")
    _require_dimensions(decoder)
    ClipWindow(start_s, end_s).check(decoder.duration_s + _EPSILON)

    count = int(math.floor((end_s - start_s) / interval_s + _EPSILON))
    timestamps = [round(start_s + k * interval_s, 6) for k in range(1, count + 1)]
    if not timestamps or abs(timestamps[-1] - end_s) > _EPSILON:
        timestamps.append(end_s)

    frames: list[Scene] = []
    for timestamp_s in timestamps:
        _check_cancelled(cancel, timestamp_s)
        frame = _decode(decoder, timestamp_s)
        frames.append(Scene(timestamp_s=timestamp_s, frame_data=encode_frame(frame)))

    logger.info("Extracted %d frames every %.1fs in %.1fs-%.1fs", len(frames), interval_s, start_s, end_s)
    return frames


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _require_dimensions(decoder: MediaDecoder) -> None:
    width, height = decoder.dimensions
    if width <= 0 or height <= 0:
        raise ResourceUnavailableError(str(getattr(decoder, "source", "<media>")), "no drawable surface (zero dimensions)")


def _clamp_window(decoder: MediaDecoder, start_s: float, end_s: float | None) -> float:
    """Validate the window against *decoder* and return the clamped end."""
    _require_dimensions(decoder)
    duration_s = decoder.duration_s
    stop_s = duration_s if end_s is None else min(end_s, duration_s)
    if start_s < 0:
        raise InvalidInputError(f"clip start {start_s:.3f}s is negative")
    if end_s is not None and start_s >= end_s:
        raise InvalidInputError(f"clip start ({start_s:.3f}s) must be before clip end ({end_s:.3f}s)")
    if start_s > stop_s:
        raise InvalidInputError(f"clip start {start_s:.3f}s is beyond the media duration ({duration_s:.3f}s)")
    return stop_s


def _check_cancelled(cancel: CancelToken | None, timestamp_s: float) -> None:
    if cancel is not None and cancel.cancelled:
        raise DetectionCancelledError(timestamp_s)


def _decode(decoder: MediaDecoder, timestamp_s: float) -> np.ndarray:
    try:
        return decoder.seek_and_decode(timestamp_s)
    except DecodeError:
        raise
    except Exception as exc:
        raise DecodeError(timestamp_s, str(exc)) from exc
