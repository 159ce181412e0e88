"""Run FFmpeg — progress parsing, cancellation, multi-pass text rendering."""

import logging
import re
import subprocess
import threading
from collections import deque
from dataclasses import dataclass
from pathlib import Path

from .command import build_command, build_text_pass_command, export_settings
from .errors import ExportCancelledError, FFmpegError
from .text import batch_windows, build_text_pass_graph

logger = logging.getLogger(__name__)

_STDERR_KEEP = 400


# ── Progress ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class Progress:
    frame: int | None = None
    fps: float | None = None
    time: float | None = None  # seconds encoded so far
    bitrate: str | None = None
    size: str | None = None
    speed: float | None = None
    percent: float | None = None


_FIELDS = {
    "frame": re.compile(r"frame=\s*(\d+)"),
    "fps": re.compile(r"fps=\s*([\d.]+)"),
    "time": re.compile(r"time=\s*(-?\d+):(\d+):([\d.]+)"),
    "bitrate": re.compile(r"bitrate=\s*(\S+)"),
    "size": re.compile(r"size=\s*(\S+)"),
    "speed": re.compile(r"speed=\s*([\d.]+)x"),
}


def parse_progress(line: str, total_duration: float | None = None) -> Progress | None:
    """Parse one ffmpeg status line; None when it carries no `time=`."""
    time_match = _FIELDS["time"].search(line)
    if not time_match:
        return None
    h, m, s = time_match.groups()
    seconds = max(0.0, int(h) * 3600 + int(m) * 60 + float(s))

    def _get(name, cast):
        match = _FIELDS[name].search(line)
        return cast(match.group(1)) if match else None

    percent = None
    if total_duration:
        percent = min(100.0, seconds / total_duration * 100)

    return Progress(
        frame=_get("frame", int),
        fps=_get("fps", float),
        time=seconds,
        bitrate=_get("bitrate", str),
        size=_get("size", str),
        speed=_get("speed", float),
        percent=percent,
    )


# ── Process ───────────────────────────────────────────────────────

def _watch_cancel(proc: subprocess.Popen, cancel_event: threading.Event) -> None:
    while proc.poll() is None:
        if cancel_event.wait(0.1):
            proc.terminate()
            return


def run_ffmpeg(
    cmd: list[str],
    total_duration: float | None = None,
    on_progress=None,
    cancel_event: threading.Event | None = None,
) -> None:
    """Run one ffmpeg command to completion.

    stderr is read line by line (carriage-return status lines included);
    each status line is reported to `on_progress` as a Progress.

    Raises:
        ExportCancelledError: cancel_event was set; the process is terminated.
        FFmpegError: ffmpeg exited non-zero (carries the stderr tail).
    """
    if cancel_event is not None and cancel_event.is_set():
        raise ExportCancelledError("Export cancelled before ffmpeg started")

    logger.debug("Running: %s", " ".join(cmd))
    stderr_lines = deque(maxlen=_STDERR_KEEP)
    # Text mode uses universal newlines, so \r-terminated status lines
    # arrive as separate lines.
    proc = subprocess.Popen(
        cmd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.PIPE,
        text=True,
        errors="replace",
    )

    watcher = None
    if cancel_event is not None:
        watcher = threading.Thread(target=_watch_cancel, args=(proc, cancel_event), daemon=True)
        watcher.start()

    for line in proc.stderr:
        line = line.rstrip()
        if not line:
            continue
        stderr_lines.append(line)
        if on_progress is not None:
            progress = parse_progress(line, total_duration)
            if progress is not None:
                on_progress(progress)
    proc.stderr.close()
    exit_code = proc.wait()
    if watcher is not None:
        watcher.join()

    if cancel_event is not None and cancel_event.is_set():
        raise ExportCancelledError("Export cancelled")
    if exit_code != 0:
        raise FFmpegError(
            f"ffmpeg exited with code {exit_code}",
            stderr="\n".join(stderr_lines),
            command=cmd,
            exit_code=exit_code,
        )


# ── Render ────────────────────────────────────────────────────────

def _pass_path(output: Path, n: int) -> Path:
    return output.with_name(f"{output.stem}.pass{n}{output.suffix}")


def _remove(paths) -> None:
    for path in paths:
        Path(path).unlink(missing_ok=True)


def render(
    compiled,
    output_path: str | Path,
    settings: dict | None = None,
    on_progress=None,
    cancel_event: threading.Event | None = None,
    keep_artifacts: bool = False,
) -> Path:
    """Render a CompiledProject to output_path.

    Runs the main pass, then, when text was deferred, one pass per batch of
    text windows, each re-encoding the previous pass's file. Passes run
    strictly one after another. Generated artifacts and intermediate files
    are removed afterwards, also on failure.

    Returns:
        The output path.
    """
    settings = export_settings(settings)
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    batches = batch_windows(compiled.text_windows, settings["text_batch_size"])
    artifacts = list(compiled.artifacts)
    temp_files = []

    try:
        main_target = _pass_path(output, 0) if batches else output
        if batches:
            temp_files.append(main_target)
        logger.info("Rendering main pass -> %s", main_target)
        run_ffmpeg(
            build_command(compiled, main_target, settings),
            compiled.total_duration, on_progress, cancel_event,
        )

        previous = main_target
        for n, windows in enumerate(batches, start=1):
            if cancel_event is not None and cancel_event.is_set():
                raise ExportCancelledError(f"Export cancelled before text pass {n}")
            target = output if n == len(batches) else _pass_path(output, n)
            if target != output:
                temp_files.append(target)
            graph, pass_artifacts = build_text_pass_graph(
                windows, compiled.width, compiled.height, compiled.fps, compiled.work_dir,
            )
            artifacts.extend(pass_artifacts)
            logger.info("Text pass %d/%d (%d windows)", n, len(batches), len(windows))
            run_ffmpeg(
                build_text_pass_command(previous, graph, target, settings),
                compiled.total_duration, on_progress, cancel_event,
            )
            _remove([previous])
            previous = target
    finally:
        _remove(temp_files)
        if not keep_artifacts:
            _remove(artifacts)

    return output
