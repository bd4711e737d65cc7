"""Shared test fixtures."""

from __future__ import annotations

from typing import Callable

import numpy as np
import pytest


class FakeDecoder:
    """In-memory MediaDecoder: *color_at(t)* gives the solid BGR colour at t."""

    def __init__(
        self,
        duration_s: float,
        color_at: Callable[[float], tuple[int, int, int]],
        width: int = 16,
        height: int = 8,
    ) -> None:
        self.duration_s = duration_s
        self.dimensions = (width, height)
        self._color_at = color_at
        self.seeks: list[float] = []

    def seek_and_decode(self, timestamp_s: float) -> np.ndarray:
        self.seeks.append(timestamp_s)
        width, height = self.dimensions
        frame = np.zeros((height, width, 3), dtype=np.uint8)
        frame[:, :] = self._color_at(timestamp_s)
        return frame


RED = (0, 0, 255)
BLUE = (255, 0, 0)


@pytest.fixture
def two_color_decoder() -> FakeDecoder:
    """4s of red, switching to blue at 2.0s."""
    return FakeDecoder(4.0, lambda t: RED if t < 2.0 - 1e-9 else BLUE)


@pytest.fixture
def solid_decoder() -> FakeDecoder:
    """10s of a single colour."""
    return FakeDecoder(10.0, lambda t: RED)


@pytest.fixture
def make_decoder() -> Callable[..., FakeDecoder]:
    return FakeDecoder
