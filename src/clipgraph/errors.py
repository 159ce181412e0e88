"""Exception types raised by clipgraph.

Validation and media errors also subclass the builtin exception the rest of
the code base would raise for the same condition (ValueError,
FileNotFoundError, RuntimeError), so callers can catch either.
"""


class ClipGraphError(Exception):
    """Base class for all clipgraph errors."""


class ValidationError(ClipGraphError, ValueError):
    """Clip list or manifest rejected before any graph is built.

    Attributes:
        errors: Every problem found, one message per entry.
        warnings: Non-fatal issues collected during the same pass.
    """

    def __init__(self, message: str, errors: list[str] | None = None,
                 warnings: list[str] | None = None):
        super().__init__(message)
        self.errors = list(errors) if errors else [message]
        self.warnings = list(warnings) if warnings else []


class GraphError(ClipGraphError):
    """A filter graph broke the produced-once / consumed-once label rule."""


class MediaNotFoundError(ClipGraphError, FileNotFoundError):
    """A clip references a media file that does not exist."""

    def __init__(self, path):
        super().__init__(f"Media file not found: {path}")
        self.path = str(path)


class FFmpegError(ClipGraphError, RuntimeError):
    """The ffmpeg process exited with a non-zero status.

    The message carries the tail of ffmpeg's stderr so the cause is visible
    without digging through logs.
    """

    def __init__(self, message: str, stderr: str = "", command=None,
                 exit_code: int | None = None):
        tail = stderr_tail(stderr)
        full = f"{message}\n{tail}" if tail else message
        super().__init__(full)
        self.stderr = stderr
        self.command = list(command) if command else []
        self.exit_code = exit_code


class ExportCancelledError(ClipGraphError):
    """An export was stopped through its cancel event."""


def stderr_tail(stderr: str, lines: int = 20) -> str:
    """Return the last non-empty lines of an ffmpeg stderr dump."""
    kept = [line for line in stderr.splitlines() if line.strip()]
    return "\n".join(kept[-lines:])
