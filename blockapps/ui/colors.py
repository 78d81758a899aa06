"""Theme colors and color utilities for the UI."""

from typing import Optional, Tuple


class Palette:
    """Light theme palette shared by the editor and the dialogs."""

    BG = "#f4f8fb"
    PANEL_BG = "#ffffff"
    BORDER = "#d6e2ea"

    PRIMARY = "#1565c0"
    PRIMARY_LIGHT = "#5e92f3"
    PRIMARY_DARK = "#003c8f"

    PASS = "#2e7d32"
    FAIL = "#c62828"
    STAR = "#ffb300"
    STAR_EMPTY_MIX = 0.75

    TEXT_PRIMARY = "#1a2a3a"
    TEXT_SECONDARY = "#4a5a72"
    TEXT_MUTED = "#78909c"

    SCRIM = "rgba(0, 0, 0, 1.0)"
    GHOST_BORDER = "#1565c0"

    @classmethod
    def for_feedback(cls, name: str) -> str:
        """Hex color for a feedback color name ("green" / "red")."""
        return cls.PASS if name == "green" else cls.FAIL


def _channels(color: str) -> Optional[Tuple[int, int, int]]:
    if len(color) != 7 or not color.startswith("#"):
        return None
    try:
        return int(color[1:3], 16), int(color[3:5], 16), int(color[5:7], 16)
    except ValueError:
        return None


def blend_hex(a: str, b: str, t: float) -> str:
    """Mix two #RRGGBB colors; t=0 gives a, t=1 gives b.

    Anything that is not a #RRGGBB pair comes back as ``a`` unchanged.
    """
    a, b = a.strip(), b.strip()
    start, end = _channels(a), _channels(b)
    if start is None or end is None:
        return a
    t = max(0.0, min(1.0, float(t)))
    mixed = (int(s + (e - s) * t) for s, e in zip(start, end))
    return "#" + "".join(f"{c:02X}" for c in mixed)
