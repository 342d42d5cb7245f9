"""ASCII Peek - render an image file as ASCII art in the terminal."""

__version__ = "0.1.0"

"""
Expose a lazy wrapper for the CLI entry point. Importing `cli` here would
make `runpy` warn when running `python -m ascii_peek.cli`, because the
module would already be in `sys.modules` before execution.
"""


def main(*args, **kwargs):
    from .cli import main as _m

    return _m(*args, **kwargs)


__all__ = ["main"]
