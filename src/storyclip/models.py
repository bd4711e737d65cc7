from dataclasses import dataclass

from storyclip.errors import InvalidInputError


@dataclass(frozen=True)
class Caption:
    """A single timed subtitle record."""

    id: int             # Assigned by the parser in block order (1-based)
    start_s: float      # pysubs2 milliseconds / 1000
    end_s: float
    text: str           # Block text lines joined with "\n"


@dataclass(frozen=True)
class Scene:
    """A sampled frame emitted by the scene detector or uniform extractor."""

    timestamp_s: float  # Position in the source media
    frame_data: str     # "data:image/jpeg;base64,..." payload


@dataclass(frozen=True)
class ClipWindow:
    """A user-selected [start, end] range of the media timeline, in seconds."""

    start_s: float
    end_s: float

    def check(self, media_duration_s: float | None = None) -> None:
        """Raise ``InvalidInputError`` unless ``0 <= start < end <= duration``."""
        if self.start_s < 0:
            raise InvalidInputError(f"clip start {self.start_s:.3f}s is negative")
        if self.start_s >= self.end_s:
            raise InvalidInputError(
                f"clip start ({self.start_s:.3f}s) must be before clip end ({self.end_s:.3f}s)"
            )
        if media_duration_s is not None and self.end_s > media_duration_s:
            raise InvalidInputError(
                f"clip end {self.end_s:.3f}s is beyond the media duration ({media_duration_s:.3f}s)"
            )

    @property
    def duration_s(self) -> float:
        return self.end_s - self.start_s
