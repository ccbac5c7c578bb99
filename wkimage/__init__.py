"""Codec building blocks of the WK image format."""

__version__ = "3.1.1"