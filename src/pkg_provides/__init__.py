"""Reverse index of installed files to the packages that own them."""

__version__ = "0.1.0"
