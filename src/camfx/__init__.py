"""Real-time webcam effects viewer."""

__version__ = "0.1.0"
