"""Unit tests for storyclip.models."""

import dataclasses

import pytest

from storyclip.errors import InvalidInputError
from storyclip.models import Caption, ClipWindow, Scene


class TestClipWindow:
    def test_valid_window(self):
        ClipWindow(1.0, 3.0).check(5.0)

    def test_duration(self):
        assert ClipWindow(1.5, 4.0).duration_s == 2.5

    @pytest.mark.parametrize("start,end", [(3.0, 3.0), (4.0, 1.0), (-0.5, 1.0)])
    def test_invalid_bounds(self, start, end):
        with pytest.raises(InvalidInputError):
            ClipWindow(start, end).check()

    def test_end_beyond_duration(self):
        with pytest.raises(InvalidInputError):
            ClipWindow(0.0, 6.0).check(5.0)

    def test_end_at_duration_allowed(self):
        ClipWindow(0.0, 5.0).check(5.0)


class TestImmutability:
    def test_caption_frozen(self):
        cap = Caption(id=1, start_s=0.0, end_s=1.0, text="a")
        with pytest.raises(dataclasses.FrozenInstanceError):
            cap.text = "b"  # type: ignore[misc]

    def test_scene_frozen(self):
        scene = Scene(timestamp_s=0.0, frame_data="data:image/jpeg;base64,")
        with pytest.raises(dataclasses.FrozenInstanceError):
            scene.timestamp_s = 1.0  # type: ignore[misc]
