"""Seek-and-decode substrate for frame sampling.

``MediaDecoder`` is the capability the samplers depend on; ``OpenCVDecoder``
backs it with a ``cv2.VideoCapture``.  One decoder owns one timeline
cursor and must not be shared between concurrent sampling calls.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

import cv2
import numpy as np

from storyclip.errors import DecodeError, ResourceUnavailableError

logger = logging.getLogger(__name__)


class MediaDecoder(Protocol):
    """Anything that can report its timeline and decode a frame at a timestamp."""

    @property
    def duration_s(self) -> float: ...

    @property
    def dimensions(self) -> tuple[int, int]: ...

    def seek_and_decode(self, timestamp_s: float) -> np.ndarray:
        """Return the ``(height, width, 3)`` uint8 frame shown at *timestamp_s*."""
        ...


class OpenCVDecoder:
    """Context manager wrapping a ``cv2.VideoCapture`` over a media file.

    Usage::

        with OpenCVDecoder(path) as decoder:
            frame = decoder.seek_and_decode(1.5)

    """

    def __init__(self, source: Path) -> None:
        self.source = source
        self._capture: cv2.VideoCapture | None = None
        self._fps = 0.0
        self._frame_count = 0
        self._width = 0
        self._height = 0

    def __enter__(self) -> "OpenCVDecoder":
        self.open()
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def open(self) -> None:
        """Open the capture and read stream metadata.

        Raises
        ------
        ResourceUnavailableError
            If the file cannot be opened or reports no frames, frame rate
            or dimensions.
        """
        if not self.source.exists():
            raise ResourceUnavailableError(str(self.source), "file does not exist")

        capture = cv2.VideoCapture(str(self.source))
        if not capture.isOpened():
            capture.release()
            raise ResourceUnavailableError(str(self.source), "cv2.VideoCapture could not open the file")

        fps = float(capture.get(cv2.CAP_PROP_FPS) or 0.0)
        frame_count = int(capture.get(cv2.CAP_PROP_FRAME_COUNT) or 0)
        width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
        height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)

        if fps <= 0 or frame_count <= 0:
            capture.release()
            raise ResourceUnavailableError(str(self.source), "duration is not queryable (no frame rate or frame count)")
        if width <= 0 or height <= 0:
            capture.release()
            raise ResourceUnavailableError(str(self.source), "video stream has no dimensions")

        self._capture = capture
        self._fps = fps
        self._frame_count = frame_count
        self._width = width
        self._height = height
        logger.debug(
            "Opened %s: %dx%d, %.3f fps, %d frames",
            self.source.name, width, height, fps, frame_count,
        )

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None

    @property
    def duration_s(self) -> float:
        return self._frame_count / self._fps if self._fps else 0.0

    @property
    def dimensions(self) -> tuple[int, int]:
        return self._width, self._height

    def seek_and_decode(self, timestamp_s: float) -> np.ndarray:
        """Seek to *timestamp_s* and decode one frame at native resolution.

        Seeks at or past the final frame clamp to the last decodable frame,
        matching how a player holds the last picture at the end of the
        timeline.

        Raises
        ------
        DecodeError
            If the decoder is closed, the seek fails, or no frame is read.
        """
        if self._capture is None:
            raise DecodeError(timestamp_s, "decoder is not open")

        frame_index = min(int(timestamp_s * self._fps + 1e-6), self._frame_count - 1)
        try:
            self._capture.set(cv2.CAP_PROP_POS_FRAMES, frame_index)
            ok, frame = self._capture.read()
        except cv2.error as exc:
            raise DecodeError(timestamp_s, str(exc)) from exc

        if not ok or frame is None:
            raise DecodeError(timestamp_s, f"no frame could be read at index {frame_index}")

        if frame.shape[1] != self._width or frame.shape[0] != self._height:
            frame = cv2.resize(frame, (self._width, self._height))
        return frame
