"""paper2slides: turn a text document into a planned slide deck."""

__version__ = "0.1.0"
