"""
Data preparation package.

Downloads and cleans the storms observation dataset.
"""

from .storms_loader import StormDataLoader

__all__ = ["StormDataLoader"]
