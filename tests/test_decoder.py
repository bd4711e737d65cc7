"""Unit tests for storyclip.ingestion.decoder.

``cv2.VideoCapture`` is mocked; no real video files are decoded.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import cv2
import numpy as np
import pytest

from storyclip.errors import DecodeError, ResourceUnavailableError
from storyclip.ingestion.decoder import OpenCVDecoder

MOCK_TARGET = "storyclip.ingestion.decoder.cv2.VideoCapture"


def _capture(fps: float = 25.0, frames: int = 100, width: int = 64, height: int = 36, opened: bool = True) -> MagicMock:
    props = {
        cv2.CAP_PROP_FPS: fps,
        cv2.CAP_PROP_FRAME_COUNT: frames,
        cv2.CAP_PROP_FRAME_WIDTH: width,
        cv2.CAP_PROP_FRAME_HEIGHT: height,
    }
    cap = MagicMock()
    cap.isOpened.return_value = opened
    cap.get.side_effect = lambda prop: props.get(prop, 0)
    cap.read.return_value = (True, np.zeros((height, width, 3), dtype=np.uint8))
    return cap


@pytest.fixture
def video(tmp_path: Path) -> Path:
    p = tmp_path / "clip.mp4"
    p.write_bytes(b"fake mp4 content")
    return p


class TestOpen:
    def test_metadata(self, video: Path) -> None:
        with patch(MOCK_TARGET, return_value=_capture()):
            with OpenCVDecoder(video) as decoder:
                assert decoder.duration_s == 4.0
                assert decoder.dimensions == (64, 36)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ResourceUnavailableError):
            OpenCVDecoder(tmp_path / "nope.mp4").open()

    def test_unopenable_file(self, video: Path) -> None:
        cap = _capture(opened=False)
        with patch(MOCK_TARGET, return_value=cap):
            with pytest.raises(ResourceUnavailableError):
                OpenCVDecoder(video).open()
        cap.release.assert_called_once()

    def test_no_duration(self, video: Path) -> None:
        with patch(MOCK_TARGET, return_value=_capture(fps=0.0)):
            with pytest.raises(ResourceUnavailableError):
                OpenCVDecoder(video).open()

    def test_no_dimensions(self, video: Path) -> None:
        with patch(MOCK_TARGET, return_value=_capture(width=0, height=0)):
            with pytest.raises(ResourceUnavailableError):
                OpenCVDecoder(video).open()

    def test_released_on_exit(self, video: Path) -> None:
        cap = _capture()
        with patch(MOCK_TARGET, return_value=cap):
            with OpenCVDecoder(video):
                pass
        cap.release.assert_called_once()


class TestSeekAndDecode:
    def test_seeks_to_frame_index(self, video: Path) -> None:
        cap = _capture(fps=25.0)
        with patch(MOCK_TARGET, return_value=cap):
            with OpenCVDecoder(video) as decoder:
                frame = decoder.seek_and_decode(2.0)
        cap.set.assert_called_with(cv2.CAP_PROP_POS_FRAMES, 50)
        assert frame.shape == (36, 64, 3)

    def test_seek_past_end_clamps_to_last_frame(self, video: Path) -> None:
        cap = _capture(fps=25.0, frames=100)
        with patch(MOCK_TARGET, return_value=cap):
            with OpenCVDecoder(video) as decoder:
                decoder.seek_and_decode(4.0)
        cap.set.assert_called_with(cv2.CAP_PROP_POS_FRAMES, 99)

    def test_read_failure_is_decode_error(self, video: Path) -> None:
        cap = _capture()
        cap.read.return_value = (False, None)
        with patch(MOCK_TARGET, return_value=cap):
            with OpenCVDecoder(video) as decoder:
                with pytest.raises(DecodeError) as exc_info:
                    decoder.seek_and_decode(1.0)
        assert exc_info.value.timestamp_s == 1.0

    def test_closed_decoder_is_decode_error(self, video: Path) -> None:
        with pytest.raises(DecodeError):
            OpenCVDecoder(video).seek_and_decode(0.0)
