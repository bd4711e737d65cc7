"""StoryClip CLI entry point.

Exposes subtitle selection, scene detection, uniform frame extraction,
story assembly and ClickUp export as ``storyclip`` subcommands with Rich
progress bars and human-readable error panels.
"""

import logging
import threading
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn
from rich.table import Table

from storyclip.config import get_default_frame_interval, get_default_sensitivity
from storyclip.credentials import TokenStore
from storyclip.errors import FrameWriteError, StoryClipError
from storyclip.ingestion.decoder import OpenCVDecoder
from storyclip.ingestion.scenes import CancelToken, decode_frame_data, detect_scenes, extract_frames
from storyclip.ingestion.subtitles import captions_in_window, load_captions, validate_captions
from storyclip.integrations.clickup import ClickUpExporter
from storyclip.models import ClipWindow, Scene
from storyclip.story.builder import build_story, load_story, save_story
from storyclip.timecode import format_timestamp

app = typer.Typer(
    name="storyclip",
    help="StoryClip: pick a clip, detect its scenes and bind them to subtitles and notes.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)

# Valid input formats
_VALID_VIDEO_EXTS = {".mkv", ".avi", ".mp4", ".mov", ".webm"}
_VALID_SUBTITLE_EXTS = {".srt"}


def _input_error(message: str) -> None:
    err_console.print(Panel(message, title="[red]Input Error[/red]", border_style="red"))
    raise typer.Exit(1)


def _check_input(path: Path, valid_exts: set[str], kind: str) -> None:
    """Extension check first, then existence, so both failures render a panel."""
    if path.suffix.lower() not in valid_exts:
        _input_error(
            f"Unsupported {kind} format: [bold]{path.suffix}[/bold]\n"
            f"Supported formats: {', '.join(sorted(valid_exts))}"
        )
    if not path.exists():
        _input_error(
            f"File not found: [bold]{path}[/bold]\n"
            f"Check that the path is correct and the file is accessible."
        )


def _pipeline_error(exc: StoryClipError) -> None:
    err_console.print(Panel(str(exc), title="[red]Pipeline Error[/red]", border_style="red"))
    raise typer.Exit(1)


def _write_frames(scenes: list[Scene], out_dir: Path) -> None:
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        for scene in scenes:
            filename = f"frame_{int(round(scene.timestamp_s * 1000)):010d}.jpg"
            (out_dir / filename).write_bytes(decode_frame_data(scene.frame_data))
    except OSError as e:
        raise FrameWriteError(out_dir, str(e)) from e


def _print_scene_table(scenes: list[Scene], summary: str) -> None:
    table = Table()
    table.add_column("#", justify="right")
    table.add_column("Timestamp")
    table.add_column("Seconds", justify="right")
    for i, scene in enumerate(scenes, start=1):
        table.add_row(str(i), format_timestamp(scene.timestamp_s), f"{scene.timestamp_s:.1f}")
    console.print(table)
    console.print(f"[bold]{summary}[/bold]")


def _run_detection(
    video: Path,
    start: float,
    end: Optional[float],
    threshold: float,
    timeout: Optional[float],
) -> list[Scene]:
    cancel = CancelToken()
    timer = threading.Timer(timeout, cancel.cancel) if timeout else None
    if timer is not None:
        timer.start()
    try:
        with OpenCVDecoder(video) as decoder, Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Sampling frames...", total=None)

            def _progress_callback(current: int, total: int) -> None:
                progress.update(task, completed=current, total=total)

            return detect_scenes(
                decoder,
                sensitivity_threshold=threshold,
                start_s=start,
                end_s=end,
                cancel=cancel,
                progress_callback=_progress_callback,
            )
    finally:
        if timer is not None:
            timer.cancel()


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", help="Show debug logging.")] = False,
) -> None:
    """Configure logging for every subcommand."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.command()
def captions(
    subtitle: Annotated[Path, typer.Argument(dir_okay=False, resolve_path=True, help="Subtitle file (SRT).")],
    start: Annotated[float, typer.Option("--start", help="Clip start in seconds.")],
    end: Annotated[float, typer.Option("--end", help="Clip end in seconds.")],
    video: Annotated[
        Optional[Path],
        typer.Option("--video", dir_okay=False, resolve_path=True, help="Validate captions against this video's duration."),
    ] = None,
) -> None:
    """Print the captions that touch the clip window."""
    _check_input(subtitle, _VALID_SUBTITLE_EXTS, "subtitle")
    if video is not None:
        _check_input(video, _VALID_VIDEO_EXTS, "video")

    try:
        window = ClipWindow(start, end)
        window.check()
        parsed = load_captions(subtitle)
        if video is not None:
            with OpenCVDecoder(video) as decoder:
                duration_s = decoder.duration_s
            if not validate_captions(parsed, duration_s):
                _input_error(
                    f"Subtitle track rejected for [bold]{video.name}[/bold]\n"
                    f"Captions overlap, are out of order, or run past the video's {duration_s:.1f}s."
                )
            window.check(duration_s)
    except StoryClipError as e:
        _pipeline_error(e)

    text = captions_in_window(parsed, start, end)
    if text:
        console.print(text, markup=False, highlight=False)
    else:
        console.print("[yellow]No captions in this clip window.[/yellow]")


@app.command()
def scenes(
    video: Annotated[Path, typer.Argument(dir_okay=False, resolve_path=True, help="Input video file.")],
    start: Annotated[float, typer.Option("--start", help="Clip start in seconds.")] = 0.0,
    end: Annotated[Optional[float], typer.Option("--end", help="Clip end in seconds (default: media end).")] = None,
    threshold: Annotated[
        Optional[float],
        typer.Option("--threshold", "-t", min=0.0, max=100.0, help="Sensitivity percent (default: STORYCLIP_SENSITIVITY or 20)."),
    ] = None,
    out: Annotated[Optional[Path], typer.Option("--out", "-o", file_okay=False, help="Write scene JPEGs here.")] = None,
    timeout: Annotated[Optional[float], typer.Option("--timeout", min=0.0, help="Abort detection after N seconds.")] = None,
) -> None:
    """Detect scene changes by pixel-difference sampling every 0.1s."""
    _check_input(video, _VALID_VIDEO_EXTS, "video")
    if threshold is None:
        threshold = get_default_sensitivity()

    try:
        found = _run_detection(video, start, end, threshold, timeout)
        if out is not None:
            _write_frames(found, out)
    except StoryClipError as e:
        _pipeline_error(e)

    _print_scene_table(found, f"{len(found)} scenes (threshold {threshold:.1f}%)")
    if out is not None:
        console.print(f"[green]Frames written to [dim]{out}[/dim]")


@app.command()
def frames(
    video: Annotated[Path, typer.Argument(dir_okay=False, resolve_path=True, help="Input video file.")],
    start: Annotated[float, typer.Option("--start", help="Clip start in seconds.")],
    end: Annotated[float, typer.Option("--end", help="Clip end in seconds.")],
    interval: Annotated[
        Optional[float],
        typer.Option("--interval", "-i", help="Seconds between frames (default: STORYCLIP_FRAME_INTERVAL or 5)."),
    ] = None,
    out: Annotated[Optional[Path], typer.Option("--out", "-o", file_okay=False, help="Write frame JPEGs here.")] = None,
) -> None:
    """Extract frames at a fixed interval across the clip window."""
    _check_input(video, _VALID_VIDEO_EXTS, "video")
    if interval is None:
        interval = get_default_frame_interval()

    try:
        with OpenCVDecoder(video) as decoder:
            grabbed = extract_frames(decoder, start, end, interval_s=interval)
        if out is not None:
            _write_frames(grabbed, out)
    except StoryClipError as e:
        _pipeline_error(e)

    _print_scene_table(grabbed, f"{len(grabbed)} frames every {interval:.1f}s")


@app.command()
def story(
    video: Annotated[Path, typer.Argument(dir_okay=False, resolve_path=True, help="Input video file.")],
    start: Annotated[float, typer.Option("--start", help="Clip start in seconds.")],
    end: Annotated[float, typer.Option("--end", help="Clip end in seconds.")],
    output: Annotated[Path, typer.Option("--output", "-o", dir_okay=False, resolve_path=True, help="Story JSON path.")],
    subtitle: Annotated[
        Optional[Path],
        typer.Option("--subtitle", "-s", dir_okay=False, resolve_path=True, help="Subtitle file (SRT)."),
    ] = None,
    notes: Annotated[str, typer.Option("--notes", "-n", help="Free-text notes for the story.")] = "",
    threshold: Annotated[
        Optional[float],
        typer.Option("--threshold", "-t", min=0.0, max=100.0, help="Sensitivity percent."),
    ] = None,
    timeout: Annotated[Optional[float], typer.Option("--timeout", min=0.0, help="Abort detection after N seconds.")] = None,
) -> None:
    """Detect scenes, select captions and write a Story JSON for the clip."""
    _check_input(video, _VALID_VIDEO_EXTS, "video")
    if subtitle is not None:
        _check_input(subtitle, _VALID_SUBTITLE_EXTS, "subtitle")
    if threshold is None:
        threshold = get_default_sensitivity()

    try:
        window = ClipWindow(start, end)
        with OpenCVDecoder(video) as decoder:
            duration_s = decoder.duration_s
        window.check(duration_s)

        captions_text = ""
        if subtitle is not None:
            parsed = load_captions(subtitle)
            if not validate_captions(parsed, duration_s):
                _input_error(
                    f"Subtitle track rejected for [bold]{video.name}[/bold]\n"
                    f"Captions overlap, are out of order, or run past the video's {duration_s:.1f}s."
                )
            captions_text = captions_in_window(parsed, start, end)

        found = _run_detection(video, start, end, threshold, timeout)
        new_story = build_story(window, found, notes=notes, captions_text=captions_text)
        save_story(new_story, output)
    except StoryClipError as e:
        _pipeline_error(e)

    console.print(Panel(
        f"[bold green]Story ready[/bold green]\n\n"
        f"  Clip:     {format_timestamp(start)} -> {format_timestamp(end)}\n"
        f"  Scenes:   {len(found)}\n"
        f"  Captions: {'yes' if captions_text else 'none'}\n"
        f"  Output:   [dim]{output}[/dim]",
        border_style="green",
    ))


@app.command()
def export(
    story_file: Annotated[Path, typer.Argument(dir_okay=False, resolve_path=True, help="Story JSON file.")],
    list_id: Annotated[str, typer.Option("--list-id", help="ClickUp list to create the task in.")],
) -> None:
    """Create a ClickUp task from a saved story."""
    if not story_file.exists():
        _input_error(f"File not found: [bold]{story_file}[/bold]")

    try:
        loaded = load_story(story_file)
        task = ClickUpExporter(TokenStore()).export_story(list_id, loaded)
    except StoryClipError as e:
        _pipeline_error(e)

    console.print(f"[green]Created ClickUp task[/green] {task.get('id', '?')}: {task.get('name', '')}")


@app.command()
def login(
    token: Annotated[str, typer.Argument(help="ClickUp personal (pk_...) or OAuth token.")],
) -> None:
    """Store a ClickUp API token after checking it against the API."""
    if not token.strip():
        _input_error("Token must not be empty.")
    store = TokenStore()
    store.set(token)
    if not ClickUpExporter(store).validate_token():
        store.clear()
        _input_error("ClickUp rejected the token; nothing was stored.")
    console.print(f"[green]Token stored in [dim]{store.path}[/dim]")


@app.command()
def logout() -> None:
    """Remove the stored ClickUp API token."""
    store = TokenStore()
    store.clear()
    console.print("[green]Token removed.[/green]")
