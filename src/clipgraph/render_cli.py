"""CLI for rendering — compile a manifest's timeline and run ffmpeg.

The whole timeline becomes a single ffmpeg invocation with one
-filter_complex graph. Projects with more text overlays than fit in one
graph get extra text passes over the rendered file.

Usage:
    python -m clipgraph.render_cli \
        --manifest project.yaml \
        --output final.mp4
"""

import argparse
import logging
import shlex
import sys

from .command import build_command
from .compiler import compile_project
from .errors import ClipGraphError
from .manifest import apply_platform_preset, load_manifest, validate_manifest_paths
from .probe import attach_media_info
from .runner import render


def _print_progress(progress):
    if progress.percent is None:
        return
    speed = f" {progress.speed:.2f}x" if progress.speed else ""
    print(f"\r  {progress.percent:5.1f}%  t={progress.time:.1f}s{speed}", end="", flush=True)


def _print_summary(config: dict) -> None:
    video = config["video"]
    clips = config["clips"]
    preset = f" (preset {video['preset']})" if video["preset"] else ""
    print(f"Manifest valid: {len(clips)} clips, "
          f"{video['width']}x{video['height']} @ {video['fps']}fps{preset}")
    for i, clip in enumerate(clips):
        end = f"{clip.end:.2f}s" if clip.end is not None else "end"
        source = getattr(clip, "url", None) or getattr(clip, "text", None) or ""
        print(f"  {i}: {clip.type:<9} {clip.position:.2f}s -> {end}  {source}")


def compile_manifest(config: dict):
    """Probe media and compile a loaded manifest config."""
    video = config["video"]
    clips = attach_media_info(config["clips"])
    return compile_project(
        clips,
        width=video["width"],
        height=video["height"],
        fps=video["fps"],
        fill_gaps=video["fill_gaps"],
        text_batch_size=config["export"]["text_batch_size"],
        output_size=video["output_size"],
    )


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Render CLI — compile a timeline manifest into one ffmpeg run.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML project manifest",
    )
    parser.add_argument(
        "--output",
        help="Output mp4 path (required unless --validate)",
    )
    parser.add_argument(
        "--validate", action="store_true",
        help="Validate manifest only — check clips and paths, don't render",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Compile and print the ffmpeg command without running it",
    )
    parser.add_argument(
        "--fill-gaps", metavar="COLOR",
        help="Fill gaps in the picture track with this color",
    )
    parser.add_argument(
        "--preset", metavar="NAME",
        help="Platform preset (e.g. youtube, tiktok) overriding the manifest",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Debug logging",
    )
    args = parser.parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_manifest(args.manifest)
        if args.preset:
            config["video"] = apply_platform_preset(config["video"], args.preset)
        if args.fill_gaps:
            config["video"]["fill_gaps"] = args.fill_gaps
        validate_manifest_paths(config)

        if args.validate:
            _print_summary(config)
            print("All paths verified.")
            return

        if not args.output:
            parser.error("--output is required (unless using --validate)")

        print(f"Compiling {len(config['clips'])} clips...")
        compiled = compile_manifest(config)
        print(f"Duration: {compiled.total_duration:.2f}s, "
              f"{len(compiled.inputs)} inputs, "
              f"{compiled.width}x{compiled.height} @ {compiled.fps}fps")
        if compiled.needs_text_passes:
            print(f"{len(compiled.text_windows)} text overlays deferred to extra passes")

        if args.dry_run:
            print(shlex.join(build_command(compiled, args.output, config["export"])))
            return

        print(f"Writing to: {args.output}")
        render(compiled, args.output, config["export"], on_progress=_print_progress)
        print(f"\nDone: {args.output}")
    except (ClipGraphError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
