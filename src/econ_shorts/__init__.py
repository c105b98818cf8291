"""Economy Shorts Script Studio: Korean finance video scripts with Gemini."""

__version__ = "0.1.0"
