"""Story assembly, atomic persistence and generator prompt rendering."""

import os
import tempfile
import time
import uuid
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from storyclip.errors import StoryError
from storyclip.models import ClipWindow, Scene
from storyclip.story.schema import ClipRange, SceneEntry, Story
from storyclip.timecode import format_timestamp


def build_story(
    window: ClipWindow,
    scenes: Sequence[Scene],
    notes: str = "",
    content: str = "",
    captions_text: str = "",
) -> Story:
    """Bind a clip window, its scenes and free-text notes into a new Story."""
    return Story(
        id=uuid.uuid4().hex,
        content=content,
        scenes=[SceneEntry(timestamp=s.timestamp_s, frame_data=s.frame_data) for s in scenes],
        notes=notes,
        captions=captions_text,
        clip_range=ClipRange(start=window.start_s, end=window.end_s),
        timestamp=int(time.time() * 1000),
    )


def save_story(story: Story, path: Path) -> None:
    """Atomically write *story* as JSON to *path* using tempfile + os.replace().

    Raises StoryError when the file cannot be written.
    """
    data = story.model_dump_json(indent=2).encode("utf-8")
    try:
        _write_atomic(path, data)
    except OSError as e:
        raise StoryError(path, str(e), action="save") from e


def _write_atomic(path: Path, data: bytes) -> None:
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".story.tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)
    except Exception:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def load_story(path: Path) -> Story:
    """Load and validate a story JSON file. Raises StoryError on failure."""
    try:
        return Story.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        field_errors = "; ".join(
            f"{' -> '.join(str(x) for x in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise StoryError(path, f"Schema validation failed: {field_errors}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise StoryError(path, str(e)) from e


def build_story_prompt(story: Story) -> str:
    """Render the text handed to an external story generator.

    Frames are referenced by timestamp only; the generator receives the
    images out of band.
    """
    clip = story.clip_range
    lines = [
        f"Clip: {format_timestamp(clip.start)} -> {format_timestamp(clip.end)}",
        "",
        "Captions:",
        story.captions or "(none)",
        "",
        "Notes:",
        story.notes or "(none)",
        "",
        f"Scenes ({len(story.scenes)}):",
    ]
    lines.extend(f"- {format_timestamp(s.timestamp)}" for s in story.scenes)
    return "\n".join(lines)
