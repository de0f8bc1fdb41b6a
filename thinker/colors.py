"""
Colour presets, theme presets and colour validation.

Only values matching the strict hex pattern ever reach the target file;
preset names are resolved to hex before that point.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .errors import InvalidInputError

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})")

# ``dim`` keeps the default dim styling, i.e. no colour
COLOR_PRESETS: dict[str, Optional[str]] = {
    "dim": None,
    "cyan": "#00ffff",
    "green": "#32cd32",
    "magenta": "#ff00ff",
    "yellow": "#ffff00",
    "blue": "#4169e1",
    "red": "#ff4444",
    "white": "#ffffff",
    "pink": "#ff69b4",
    "orange": "#ff8c00",
    "purple": "#9370db",
    "teal": "#20b2aa",
    "gold": "#ffd700",
    "lime": "#00ff00",
    "coral": "#ff7f50",
    "sky": "#87ceeb",
}

# theme -> (header colour, content colour)
THEME_PRESETS: dict[str, tuple[str, str]] = {
    "watermelon": ("#32cd32", "#FF77FF"),
    "emerald-saffron": ("#00C853", "#F4C24D"),
    "bubblegum": ("#87ceeb", "#FF77FF"),
    "carrot": ("#ff8c00", "#32cd32"),
    "autumn": ("#FFBF00", "#D2691E"),
    "ocean": ("#98D8C8", "#20B2AA"),
    "forest": ("#90EE90", "#228B22"),
    "cherry-blossom": ("#FF69B4", "#FFB6C1"),
    "cyberpunk": ("#FCE300", "#00F0FF"),
}


def is_hex_color(value: str) -> bool:
    """True for ``#RGB`` or ``#RRGGBB`` and nothing else."""
    return bool(_HEX_RE.fullmatch(value))


def validate_color(value: str) -> Optional[str]:
    """
    Resolve a preset name or hex value to a hex colour.

    Returns None for ``dim``.  Raises :class:`InvalidInputError` for
    anything else, including values with trailing text.
    """
    key = value.strip().lower()
    if key in COLOR_PRESETS:
        return COLOR_PRESETS[key]
    if is_hex_color(value):
        return value
    raise InvalidInputError(
        f'Invalid color "{value}". Use a preset ({", ".join(COLOR_PRESETS)}) '
        f"or a hex value like #ff69b4"
    )


def resolve_colors(
    theme: str | None = None,
    color: str | None = None,
    content_color: str | None = None,
) -> tuple[Optional[str], Optional[str]]:
    """
    Work out ``(header_color, content_color)`` from the user's choices.

    A theme supplies both colours and explicit colours are then ignored.
    Without a theme the content colour defaults to the header colour.
    """
    if theme:
        preset = THEME_PRESETS.get(theme.strip().lower())
        if preset is None:
            raise InvalidInputError(
                f'Unknown theme "{theme}". Available: {", ".join(THEME_PRESETS)}'
            )
        if color or content_color:
            logger.warning("Theme %s given, ignoring explicit colours", theme)
        return preset

    header = validate_color(color) if color else None
    content = validate_color(content_color) if content_color else header
    return header, content
