"""LinkUp: a small social feed of captioned, joinable activities."""

__version__ = "0.1.0"
