"""Color palette, Rich theme, and status glyphs shared by all commands."""

from __future__ import annotations

from dataclasses import dataclass

from rich.theme import Theme


@dataclass(frozen=True)
class ColorPalette:
    """Terminal colors for perfbaseline output.

    Tuned for dark backgrounds; pass/fail colors stay distinguishable for
    red-green color blindness by pairing them with glyphs.
    """

    primary: str = "#7AA2F7"
    success: str = "#A6E3A1"
    warning: str = "#F9E2AF"
    error: str = "#F38BA8"
    info: str = "#89DCEB"
    text: str = "#CDD6F4"
    text_muted: str = "#9399B2"
    border: str = "#585B70"


PALETTE = ColorPalette()

PB_THEME = Theme(
    {
        "pb.header": f"bold {PALETTE.primary}",
        "pb.label": f"bold {PALETTE.text}",
        "pb.muted": f"{PALETTE.text_muted}",
        "pb.pass": f"bold {PALETTE.success}",
        "pb.fail": f"bold {PALETTE.error}",
        "pb.warn": f"bold {PALETTE.warning}",
        "pb.info": f"{PALETTE.info}",
        "pb.ok": f"{PALETTE.success}",
        "pb.err": f"{PALETTE.error}",
        "pb.caution": f"{PALETTE.warning}",
        "pb.border": f"{PALETTE.border}",
        "pb.border.success": f"{PALETTE.success}",
        "pb.border.error": f"{PALETTE.error}",
        "pb.border.info": f"{PALETTE.info}",
    }
)

STATUS_ICONS: dict[str, str] = {
    "pass": "✓",
    "fail": "✗",
    "warn": "!",
    "info": "•",
}

PANEL_PADDING: tuple[int, int] = (1, 2)
