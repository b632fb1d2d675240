"""Utility helpers for plantilog: colour palettes and target validation."""

from .colors import ColorPalette, ANSI_PALETTE, EMPTY_PALETTE
from .validation import check_directory, check_file, check_encoding
