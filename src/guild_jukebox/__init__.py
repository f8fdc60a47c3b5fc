"""Discord music bot with per-guild playback sessions."""

__version__ = "0.1.0"
