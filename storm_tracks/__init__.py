"""
Atlantic hurricane track report.

Builds per storm-year track geometries from storm observations and
renders them as static and interactive maps.
"""

__version__ = "0.1.0"
