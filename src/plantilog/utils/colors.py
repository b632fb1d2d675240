"""Colour palettes substituted for the colour placeholders.

A palette maps the five symbolic colours of the format mini-language to the
strings written in their place. The console sink uses ANSI_PALETTE unless a
per-call override supplies another one; the file and database sinks always
use EMPTY_PALETTE so no escape sequence ends up in persisted text.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class ColorPalette:
    """Strings substituted for %{CR}, %{CA}, %{CV}, %{CM} and %{CF}.

    Attributes:
        red: Substituted for %{CR}.
        blue: Substituted for %{CA}.
        green: Substituted for %{CV}.
        yellow: Substituted for %{CM}.
        reset: Substituted for %{CF}, ends the colouring.
    """

    red: str = ""
    blue: str = ""
    green: str = ""
    yellow: str = ""
    reset: str = ""

    def as_fields(self) -> Dict[str, str]:
        """Return the palette as renderer field values."""
        return {
            "red": self.red,
            "blue": self.blue,
            "green": self.green,
            "yellow": self.yellow,
            "reset": self.reset,
        }


ANSI_PALETTE = ColorPalette(
    red="\x1b[31m",
    blue="\x1b[34m",
    green="\x1b[32m",
    yellow="\x1b[33m",
    reset="\x1b[0m",
)

EMPTY_PALETTE = ColorPalette()
