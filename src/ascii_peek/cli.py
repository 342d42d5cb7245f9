#!/usr/bin/env python3
"""Render an image file as ASCII art in the terminal."""

import argparse
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, TextIO

from .errors import AsciiPeekError, InvalidWidth, OutputError
from .renderer import CHAR_ASPECT, load_image, render_ascii
from .resolver import InputResolver, SelectionRequest

LOG = logging.getLogger(__name__)


# -----------------------------
# Options
# -----------------------------

@dataclass
class RenderOptions:
    width: int = 80
    invert: bool = False
    char_aspect: float = CHAR_ASPECT  # not exposed on the command line


@dataclass
class Options:
    selection: SelectionRequest = field(default_factory=SelectionRequest)
    render: RenderOptions = field(default_factory=RenderOptions)
    output: Optional[str] = None  # None => stdout
    log_level: str = "WARNING"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ascii-peek",
        description="Render an image as ASCII art. With no input flags, images "
        "in the current directory are offered for selection.",
    )
    parser.add_argument(
        "-i",
        "--input",
        default="",
        help="Path to an input image or a directory of images",
    )
    parser.add_argument(
        "--glob",
        default="",
        help="Glob to match images (e.g. '*.png'); filters -i when it is a directory",
    )
    parser.add_argument(
        "--stdin",
        action="store_true",
        help="Read an image path from stdin (first usable non-empty line)",
    )
    parser.add_argument(
        "--interactive",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Prompt to choose when images are found by a scan (default: on)",
    )
    parser.add_argument(
        "-w",
        "--width",
        type=int,
        default=80,
        help="Output width in characters",
    )
    parser.add_argument(
        "--invert",
        action="store_true",
        help="Invert brightness mapping (useful for light backgrounds)",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output text file (default: stdout)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: WARNING)",
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> Options:
    args = build_parser().parse_args(argv)
    return Options(
        selection=SelectionRequest(
            input_path=args.input or None,
            glob=args.glob or None,
            from_stdin=args.stdin,
            interactive=args.interactive,
        ),
        render=RenderOptions(width=args.width, invert=args.invert),
        output=args.output,
        log_level=args.log_level,
    )


def setup_logging(level_name: str) -> None:
    # stdout carries the art, so diagnostics go to stderr
    numeric_level = getattr(logging, level_name.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.WARNING
    logging.basicConfig(
        stream=sys.stderr, level=numeric_level, format="%(levelname)s: %(message)s"
    )


# -----------------------------
# Run
# -----------------------------

def run(
    opt: Options,
    stdin: Optional[TextIO] = None,
    prompt: Optional[TextIO] = None,
) -> List[str]:
    """Resolve, decode and render; returns the rows without writing them."""
    if opt.render.width <= 0:
        raise InvalidWidth("-w must be > 0")

    path = InputResolver(stdin=stdin, prompt=prompt).resolve(opt.selection)
    img = load_image(path)
    return render_ascii(
        img,
        width=opt.render.width,
        invert=opt.render.invert,
        char_aspect=opt.render.char_aspect,
    )


def write_rows(rows: Sequence[str], output: Optional[str] = None) -> None:
    text = "".join(row + "\n" for row in rows)
    if output:
        try:
            with open(output, "w", encoding="utf-8") as f:
                f.write(text)
        except OSError as exc:
            raise OutputError(f"write: {exc}") from exc
    else:
        try:
            sys.stdout.write(text)
            sys.stdout.flush()
        except BrokenPipeError as exc:
            _silence_stdout()
            raise OutputError(f"write: {exc}") from exc
        except OSError as exc:
            raise OutputError(f"write: {exc}") from exc


def _silence_stdout() -> None:
    # Point the stdout fd at devnull so the flush at interpreter exit cannot fail again.
    try:
        fd = sys.stdout.fileno()
    except (OSError, ValueError):
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, fd)
    os.close(devnull)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the ascii-peek CLI; returns the exit status."""
    opt = parse_args(argv)
    setup_logging(opt.log_level)
    LOG.debug("Selection: %s", opt.selection)
    LOG.debug("Render: %s", opt.render)

    try:
        rows = run(opt)
        write_rows(rows, opt.output)
    except AsciiPeekError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    LOG.debug("Wrote %d rows", len(rows))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
