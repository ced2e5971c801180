"""texshelf - manage a shelf of LaTeX study notes."""

__version__ = "0.1.0"
