"""Pick exactly one image path from the ways a user can point at input.

Strategies are tried in a fixed order: stdin, explicit path, glob, then a
scan of the current directory. The first strategy that applies either
returns a path or raises a ``ResolutionError``; later ones are not tried.
"""

import fnmatch
import glob as _glob
import logging
import os
import re
import sys
from dataclasses import dataclass
from typing import List, Optional, Sequence, TextIO

from .errors import (
    EmptyDirectory,
    InvalidSelection,
    NoGlobMatch,
    NoImagesFound,
    NoUsableInput,
    NotAnImage,
    PathNotFound,
    StdinReadError,
)

LOG = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tif", ".tiff"})


# -----------------------------
# Data model
# -----------------------------

@dataclass
class SelectionRequest:
    input_path: Optional[str] = None  # file or directory
    glob: Optional[str] = None
    from_stdin: bool = False
    interactive: bool = True


# -----------------------------
# Filesystem helpers
# -----------------------------

def is_image_ext(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in IMAGE_EXTENSIONS


def is_dir(path: str) -> bool:
    return os.path.isdir(path)


def file_exists(path: str) -> bool:
    """True for anything that exists and is not a directory."""
    return os.path.exists(path) and not os.path.isdir(path)


def is_image_file(path: str) -> bool:
    return file_exists(path) and is_image_ext(path)


def images_in_dir(directory: str) -> List[str]:
    """Sorted image files directly inside ``directory`` (no recursion)."""
    try:
        names = os.listdir(directory)
    except OSError as exc:
        LOG.debug("Cannot list %s: %s", directory, exc)
        return []

    out = []
    for name in names:
        path = os.path.normpath(os.path.join(directory, name))
        if os.path.isdir(path):
            continue
        if is_image_ext(path):
            out.append(path)
    out.sort()
    return out


def filter_images(paths: Sequence[str]) -> List[str]:
    return sorted(p for p in paths if is_image_file(p))


def filter_by_glob(paths: Sequence[str], pattern: Optional[str]) -> List[str]:
    """Keep paths whose base name matches ``pattern``; no pattern keeps all."""
    if not pattern:
        return list(paths)
    return [p for p in paths if fnmatch.fnmatchcase(os.path.basename(p), pattern)]


# -----------------------------
# Interactive picker
# -----------------------------

_LEADING_INT = re.compile(r"[+-]?\d+")


def parse_index(text: str, count: int) -> Optional[int]:
    """Turn 1-based user input into a 0-based index, or None if unusable."""
    m = _LEADING_INT.match(text)
    if not m:
        return None
    idx = int(m.group()) - 1
    if idx < 0 or idx >= count:
        return None
    return idx


def pick_interactive(
    candidates: Sequence[str],
    stdin: TextIO,
    prompt: TextIO,
) -> str:
    """
    Show a numbered listing and read a choice.

    Empty input (or EOF) selects the first entry. Anything that is not a
    valid number is tried as a path: an image file is taken as is, even if
    it is not one of the listed candidates, and a directory yields its
    first image.
    """
    print("Select an image to render:", file=prompt)
    for i, cand in enumerate(candidates, start=1):
        print(f"  {i}) {cand}", file=prompt)
    prompt.write(f"Enter number (1-{len(candidates)}) or a path (default 1): ")
    prompt.flush()

    try:
        line = stdin.readline()
    except (OSError, ValueError) as exc:
        raise StdinReadError(f"stdin: {exc}") from exc
    line = line.strip()

    if not line:
        return candidates[0]

    idx = parse_index(line, len(candidates))
    if idx is not None:
        return candidates[idx]

    if is_image_file(line):
        LOG.debug("Picker accepted literal path %s", line)
        return line
    if is_dir(line):
        found = images_in_dir(line)
        if found:
            return found[0]

    raise InvalidSelection("invalid selection")


# -----------------------------
# Strategies
# -----------------------------

class Strategy:
    """One way of turning a request into a path.

    ``resolve`` returns None when the strategy does not apply to the
    request, a path on success, and raises on failure.
    """

    name = "strategy"

    def resolve(self, request: SelectionRequest, resolver: "InputResolver") -> Optional[str]:
        raise NotImplementedError


class StdinStrategy(Strategy):
    name = "stdin"

    def resolve(self, request, resolver):
        if not request.from_stdin:
            return None

        stream = resolver.stdin
        while True:
            try:
                raw = stream.readline()
            except (OSError, ValueError) as exc:
                raise StdinReadError(f"stdin: {exc}") from exc
            if not raw:
                break

            path = raw.strip()
            if not path:
                continue
            if is_image_file(path):
                return path
            if is_dir(path):
                cands = images_in_dir(path)
                if cands:
                    return resolver.choose(cands, request.interactive)
            LOG.debug("Skipping unusable stdin line %r", path)

        raise NoUsableInput("no usable path from stdin")


class ExplicitPathStrategy(Strategy):
    name = "explicit"

    def resolve(self, request, resolver):
        path = request.input_path
        if not path:
            return None

        if is_dir(path):
            cands = filter_by_glob(images_in_dir(path), request.glob)
            if not cands:
                raise EmptyDirectory(f"no images found in directory: {path}")
            return resolver.choose(cands, request.interactive)
        if file_exists(path):
            if is_image_ext(path):
                return path
            raise NotAnImage(f"not an image: {path}")
        raise PathNotFound(f"path not found: {path}")


class GlobStrategy(Strategy):
    name = "glob"

    def resolve(self, request, resolver):
        if not request.glob:
            return None

        cands = filter_images(_glob.glob(request.glob, include_hidden=True))
        if not cands:
            raise NoGlobMatch(f"glob matched no images: {request.glob}")
        return resolver.choose(cands, request.interactive)


class DefaultStrategy(Strategy):
    name = "default"

    def resolve(self, request, resolver):
        cands = images_in_dir(".")
        if not cands:
            raise NoImagesFound(
                "no images found in current directory; pass -i, --glob, or --stdin"
            )
        return resolver.choose(cands, request.interactive)


DEFAULT_STRATEGIES = (
    StdinStrategy(),
    ExplicitPathStrategy(),
    GlobStrategy(),
    DefaultStrategy(),
)


class InputResolver:
    """Runs the strategies in order against one ``SelectionRequest``."""

    def __init__(
        self,
        stdin: Optional[TextIO] = None,
        prompt: Optional[TextIO] = None,
        strategies: Sequence[Strategy] = DEFAULT_STRATEGIES,
    ):
        self._stdin = stdin
        self._prompt = prompt
        self.strategies = tuple(strategies)

    # Looked up lazily so a swapped sys.stdin/sys.stderr is honoured.
    @property
    def stdin(self) -> TextIO:
        return self._stdin if self._stdin is not None else sys.stdin

    @property
    def prompt(self) -> TextIO:
        return self._prompt if self._prompt is not None else sys.stderr

    def choose(self, candidates: Sequence[str], interactive: bool) -> str:
        if interactive:
            return pick_interactive(candidates, self.stdin, self.prompt)
        if len(candidates) > 1:
            LOG.debug("%d candidates, taking %s", len(candidates), candidates[0])
        return candidates[0]

    def resolve(self, request: SelectionRequest) -> str:
        for strategy in self.strategies:
            path = strategy.resolve(request, self)
            if path is not None:
                LOG.debug("Resolved %s via %s strategy", path, strategy.name)
                return path
        raise NoUsableInput("no image selected")


def resolve_input(
    request: SelectionRequest,
    stdin: Optional[TextIO] = None,
    prompt: Optional[TextIO] = None,
) -> str:
    return InputResolver(stdin=stdin, prompt=prompt).resolve(request)
