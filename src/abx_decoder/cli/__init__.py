"""Command-line interface module for ABX Decoder.

This module provides the abx-decode tool for decoding, checking and inspecting
ABX files.
"""

from .main import main

__all__ = ["main"]
