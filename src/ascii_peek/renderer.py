"""Nearest-neighbor luminance rendering of decoded images into glyph rows."""

import logging
import math
from typing import List

import numpy as np
from PIL import Image

from .errors import DecodeError, DegenerateImage, InvalidWidth, OpenError

LOG = logging.getLogger(__name__)

# -----------------------------
# Rendering policy
# -----------------------------

# Dark -> light. The trailing space is the brightest glyph.
GLYPH_RAMP = "@%#*+=-:. "

# Width/height of a terminal character cell (smaller = fewer rows).
CHAR_ASPECT = 0.5

# Rec. 709 luma weights
LUMA_R = 0.2126
LUMA_G = 0.7152
LUMA_B = 0.0722


def glyph_ramp(invert: bool = False) -> str:
    """Return the ramp, reversed once when ``invert`` is set."""
    return GLYPH_RAMP[::-1] if invert else GLYPH_RAMP


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_height(
    src_w: int, src_h: int, width: int, char_aspect: float = CHAR_ASPECT
) -> int:
    """Output rows for ``width`` columns, corrected for tall character cells."""
    return max(1, round_half_up(float(src_h) * char_aspect * float(width) / float(src_w)))


# -----------------------------
# Pixel math (vectorized)
# -----------------------------

def luma8(rgb: np.ndarray) -> np.ndarray:
    """
    rgb: ...x3 array of 8-bit channel values
    returns: ... uint8 luma, clamped to [0, 255] and rounded half up
    """
    rgb = np.asarray(rgb, dtype=np.float64)
    lum = LUMA_R * rgb[..., 0] + LUMA_G * rgb[..., 1] + LUMA_B * rgb[..., 2]
    lum = np.clip(lum, 0.0, 255.0)
    return np.floor(lum + 0.5).astype(np.uint8)


def glyph_indices(luma: np.ndarray, ramp_len: int = len(GLYPH_RAMP)) -> np.ndarray:
    """Map 0..255 luma onto ramp positions 0..ramp_len-1."""
    luma = np.asarray(luma, dtype=np.float64)
    return np.floor(luma * (ramp_len - 1) / 255.0 + 0.5).astype(np.intp)


def sample_coords(src_len: int, dst_len: int) -> np.ndarray:
    """Nearest-neighbor source index for each of ``dst_len`` output cells."""
    idx = (np.arange(dst_len, dtype=np.float64) * src_len / dst_len).astype(np.intp)
    return np.minimum(idx, src_len - 1)


def sample_grid(rgb: np.ndarray, width: int, height: int) -> np.ndarray:
    """Pick one source pixel per output cell: HxWx3 -> height x width x 3."""
    src_h, src_w = rgb.shape[:2]
    ys = sample_coords(src_h, height)
    xs = sample_coords(src_w, width)
    return rgb[ys[:, None], xs[None, :]]


# -----------------------------
# Decode boundary
# -----------------------------

def _flatten_alpha(img: Image.Image) -> Image.Image:
    # Composite over black so transparent pixels read as premultiplied samples.
    rgba = img.convert("RGBA")
    bg = Image.new("RGB", img.size, (0, 0, 0))
    bg.paste(rgba, mask=rgba.split()[3])
    return bg


def to_rgb(img: Image.Image) -> Image.Image:
    """Normalise any decoded mode to 8-bit, 3-channel RGB."""
    if img.mode in ("RGBA", "LA", "PA") or (img.mode == "P" and "transparency" in img.info):
        return _flatten_alpha(img)
    if img.mode.startswith("I;16"):
        # 16-bit grayscale: keep the high byte of each sample.
        arr = (np.asarray(img, dtype=np.uint16) >> 8).astype(np.uint8)
        return Image.fromarray(arr).convert("RGB")
    if img.mode == "I" and img.format == "PNG":
        # Older Pillow opens 16-bit grayscale PNGs as 32-bit "I".
        arr = np.clip(np.asarray(img, dtype=np.int64) >> 8, 0, 255).astype(np.uint8)
        return Image.fromarray(arr).convert("RGB")
    if img.mode == "RGB":
        return img
    return img.convert("RGB")


def check_dimensions(img: Image.Image) -> None:
    w, h = img.size
    if w == 0 or h == 0:
        raise DegenerateImage("image has zero dimension")


def load_image(path: str) -> Image.Image:
    """Open and decode ``path``; the file handle is closed on every exit path."""
    try:
        fh = open(path, "rb")
    except OSError as exc:
        raise OpenError(f"open: {exc}") from exc

    with fh:
        try:
            img = Image.open(fh)
            img.load()
        except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
            raise DecodeError(f"decode: {exc}") from exc

    LOG.debug("Decoded %s: format=%s mode=%s size=%dx%d",
              path, img.format, img.mode, img.width, img.height)
    check_dimensions(img)
    return to_rgb(img)


# -----------------------------
# ASCII rendering
# -----------------------------

def render_grid(rgb: np.ndarray, width: int, height: int, ramp: str) -> List[str]:
    """Render an HxWx3 array to exactly ``height`` rows of ``width`` glyphs."""
    cells = sample_grid(rgb, width, height)
    idx = glyph_indices(luma8(cells), len(ramp))
    glyphs = np.array(list(ramp))
    return ["".join(row) for row in glyphs[idx]]


def render_ascii(
    img: Image.Image,
    width: int,
    invert: bool = False,
    char_aspect: float = CHAR_ASPECT,
) -> List[str]:
    """
    Convert a decoded image into rows of text.

    Args:
        img: Decoded image (any PIL mode)
        width: Output width in characters, > 0
        invert: Reverse the glyph ramp so bright pixels get dense glyphs
        char_aspect: Width/height ratio of a character cell

    Returns:
        List of rows, top to bottom, each exactly ``width`` characters
    """
    if width <= 0:
        raise InvalidWidth("-w must be > 0")
    check_dimensions(img)

    src_w, src_h = img.size
    height = compute_height(src_w, src_h, width, char_aspect)
    LOG.debug("Rendering %dx%d -> %dx%d (aspect=%s invert=%s)",
              src_w, src_h, width, height, char_aspect, invert)

    rgb = np.asarray(to_rgb(img), dtype=np.uint8)
    return render_grid(rgb, width, height, glyph_ramp(invert))
