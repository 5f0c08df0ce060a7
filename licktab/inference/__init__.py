"""Inference layer - Musical understanding.

This layer estimates tonal context from the signal:
- Key detection (pitch-class histogram)
"""

from .key import KeyEstimator, KeyInfo

__all__ = [
    "KeyEstimator",
    "KeyInfo",
]
