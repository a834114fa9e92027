"""Cardiovascular risk calculation and intervention simulation engine."""

__version__ = "0.1.0"
