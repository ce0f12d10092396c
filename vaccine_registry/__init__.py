"""Vaccine registry: citizens, vaccination centers and dose appointments."""

__version__ = "0.1.0"
