"""CLI for probing — print what the compiler will see for a media file.

Usage:
    python -m clipgraph.probe_cli source.mp4 [more.mp4 ...]
"""

import argparse
import json
import sys
from dataclasses import asdict

from .errors import MediaNotFoundError
from .probe import probe_media


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Probe CLI — duration, size, rotation and audio of media files.",
    )
    parser.add_argument("files", nargs="+", help="Media files to probe")
    parser.add_argument(
        "--json", action="store_true",
        help="Print one JSON object per file",
    )
    parsed = parser.parse_args(args)

    failed = False
    for path in parsed.files:
        try:
            info = probe_media(path)
        except (MediaNotFoundError, OSError) as e:
            print(f"Error: {e}", file=sys.stderr)
            failed = True
            continue

        if parsed.json:
            print(json.dumps({"path": path, **asdict(info)}))
            continue

        duration = f"{info.duration:.3f}s" if info.duration is not None else "still"
        size = f"{info.width}x{info.height}" if info.width else "no video"
        audio = f"audio {info.sample_rate}Hz" if info.has_audio else "no audio"
        rotation = f", rotated {info.rotation}" if info.rotation else ""
        print(f"{path}: {duration}, {size}{rotation}, {audio}")

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
