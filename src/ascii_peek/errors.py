"""Exceptions raised while selecting, decoding and rendering an image."""


class AsciiPeekError(Exception):
    """Base class for every failure that ends a run."""


class InvalidWidth(AsciiPeekError):
    pass


# -----------------------------
# Input resolution
# -----------------------------

class ResolutionError(AsciiPeekError):
    """No single image path could be chosen."""


class PathNotFound(ResolutionError):
    pass


class NotAnImage(ResolutionError):
    pass


class EmptyDirectory(ResolutionError):
    pass


class NoGlobMatch(ResolutionError):
    pass


class NoImagesFound(ResolutionError):
    pass


class NoUsableInput(ResolutionError):
    pass


class StdinReadError(ResolutionError):
    pass


class InvalidSelection(ResolutionError):
    pass


# -----------------------------
# Decoding
# -----------------------------

class OpenError(AsciiPeekError):
    pass


class DecodeError(AsciiPeekError):
    pass


class DegenerateImage(AsciiPeekError):
    pass


class OutputError(AsciiPeekError):
    pass
