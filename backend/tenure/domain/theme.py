"""Theme derivation from the interests ranking.

Pure and referentially transparent: the same ranking always yields an equal
ThemeState. No profile yields the neutral default.
"""

import re
from collections.abc import Sequence

from tenure.domain.categories import RiasecType, category_color
from tenure.schemas.discover import ThemeColors, ThemeGradients, ThemeShadows, ThemeState

GRADIENT_ANGLE = "135deg"
LUMA_THRESHOLD = 128

_HEX_RE = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)

# Fixed surface palette shared by every theme
_BASE_PALETTE = {
    "background": "#121212",
    "surface": "#1E1E1E",
    "text": "#F3F4F6",
    "text_muted": "#9CA3AF",
    "border": "#374151",
}

NEUTRAL_THEME = ThemeState(
    colors=ThemeColors(
        primary="#FFFFFF",
        secondary="#A3A3A3",
        accent="#FFFFFF",
        text_on_primary="black",
        **_BASE_PALETTE,
    ),
    gradients=ThemeGradients(primary=f"linear-gradient({GRADIENT_ANGLE}, #FFFFFF, #A3A3A3)"),
    shadows=ThemeShadows(
        sm="0 4px 12px rgba(255, 255, 255, 0.1), 0 2px 4px rgba(255, 255, 255, 0.05)",
        md="0 8px 24px rgba(255, 255, 255, 0.15), 0 4px 8px rgba(255, 255, 255, 0.1)",
        lg="0 16px 48px rgba(255, 255, 255, 0.2), 0 8px 16px rgba(255, 255, 255, 0.15)",
    ),
)


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    match = _HEX_RE.match(hex_color)
    if not match:
        raise ValueError(f"Not a 6-digit hex color: {hex_color!r}")
    return tuple(int(part, 16) for part in match.groups())  # type: ignore[return-value]


def luma(r: int, g: int, b: int) -> float:
    """ITU-R BT.601 (YIQ) luma on 0-255 channels."""
    return (r * 299 + g * 587 + b * 114) / 1000


def contrast_text(hex_color: str) -> str:
    """'black' on light colors (luma >= 128), 'white' on dark ones."""
    try:
        r, g, b = hex_to_rgb(hex_color)
    except ValueError:
        return "black"
    return "black" if luma(r, g, b) >= LUMA_THRESHOLD else "white"


def _rgb_triple(hex_color: str) -> str:
    return ", ".join(str(channel) for channel in hex_to_rgb(hex_color))


def derive_theme(ranked: Sequence[RiasecType | str] | None) -> ThemeState:
    """Build theme tokens from ranked category keys (best first).

    primary follows the top category; secondary and accent follow the
    runner-up, or the top category again when only one is given.
    """
    if not ranked:
        return NEUTRAL_THEME

    top1 = ranked[0]
    top2 = ranked[1] if len(ranked) > 1 else top1

    primary = category_color(top1)
    secondary = category_color(top2)
    p_rgb = _rgb_triple(primary)
    s_rgb = _rgb_triple(secondary)

    return ThemeState(
        colors=ThemeColors(
            primary=primary,
            secondary=secondary,
            accent=secondary,
            text_on_primary=contrast_text(primary),
            **_BASE_PALETTE,
        ),
        gradients=ThemeGradients(primary=f"linear-gradient({GRADIENT_ANGLE}, {primary}, {secondary})"),
        shadows=ThemeShadows(
            sm=f"0 4px 12px rgba({p_rgb}, 0.2), 0 2px 4px rgba({s_rgb}, 0.1)",
            md=f"0 8px 24px rgba({p_rgb}, 0.3), 0 4px 8px rgba({s_rgb}, 0.2)",
            lg=f"0 16px 48px rgba({p_rgb}, 0.4), 0 8px 16px rgba({s_rgb}, 0.3)",
        ),
    )
