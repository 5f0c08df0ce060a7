"""Input layer - Audio decoding and preprocessing."""

from .loader import AudioLoader

__all__ = ["AudioLoader"]
