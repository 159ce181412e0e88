"""Subcommand dispatcher for clipgraph.

Usage:
    clipgraph render --manifest project.yaml --output final.mp4
    clipgraph probe  source.mp4
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="clipgraph",
        description="Compile video timelines into a single ffmpeg filter graph.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("render", help="Render a YAML timeline manifest")
    subparsers.add_parser("probe", help="Probe media files")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "render":
        from .render_cli import main as render_main
        render_main(remaining)
    elif parsed.command == "probe":
        from .probe_cli import main as probe_main
        probe_main(remaining)


if __name__ == "__main__":
    main()
