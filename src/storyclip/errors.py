from pathlib import Path


class StoryClipError(Exception):
    """Base class for all StoryClip errors."""


class InvalidInputError(StoryClipError):
    def __init__(self, detail: str) -> None:
        super().__init__(
            f"Invalid input.\n"
            f"  Cause: {detail}"
        )
        self.detail = detail


class SubtitleParseError(StoryClipError):
    def __init__(self, detail: str, path: Path | None = None) -> None:
        source = f"subtitle file '{path.name}'" if path is not None else "subtitle text"
        super().__init__(
            f"Cannot parse {source}.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is the track valid SRT (index line, 'HH:MM:SS,mmm --> HH:MM:SS,mmm', text, blank line)?\n"
            f"  Tip: Try re-saving the file as UTF-8 in a text editor."
        )
        self.path = path
        self.detail = detail


class ResourceUnavailableError(StoryClipError):
    def __init__(self, source: str, detail: str) -> None:
        super().__init__(
            f"Cannot open a decode surface for '{source}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is the file a readable video (MP4, MKV, AVI, MOV, WEBM)?\n"
            f"  Tip: Run `ffprobe '{source}' -v quiet -show_streams` to verify the file is readable."
        )
        self.source = source
        self.detail = detail


class DecodeError(StoryClipError):
    def __init__(self, timestamp_s: float, detail: str) -> None:
        super().__init__(
            f"Failed to decode a frame at {timestamp_s:.2f}s.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is the video complete and not truncated? No partial scene list was kept."
        )
        self.timestamp_s = timestamp_s
        self.detail = detail


class DetectionCancelledError(StoryClipError):
    def __init__(self, timestamp_s: float) -> None:
        super().__init__(
            f"Frame sampling was cancelled at {timestamp_s:.2f}s.\n"
            f"  Cause: the cancel token was triggered (timeout or user abort)."
        )
        self.timestamp_s = timestamp_s


class StoryError(StoryClipError):
    def __init__(self, path: Path, detail: str, action: str = "load") -> None:
        check = (
            "Does the output directory exist and is it writable?"
            if action == "save"
            else "Is the file valid JSON matching the Story schema?"
        )
        super().__init__(
            f"Cannot {action} story '{path.name}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: {check}"
        )
        self.path = path
        self.detail = detail


class FrameWriteError(StoryClipError):
    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(
            f"Cannot write frames to '{path}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is the --out path a writable directory and not an existing file?"
        )
        self.path = path
        self.detail = detail


class ExportError(StoryClipError):
    def __init__(self, detail: str, status_code: int | None = None) -> None:
        status = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(
            f"ClickUp export failed{status}.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is the API token valid? Run `storyclip login <token>` to store one."
        )
        self.detail = detail
        self.status_code = status_code
