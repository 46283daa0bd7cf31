"""Tests for theme derivation and contrast text selection."""

import pytest

from tenure.domain.categories import CATEGORY_COLORS, RiasecType, category_color
from tenure.domain.theme import NEUTRAL_THEME, contrast_text, derive_theme, hex_to_rgb, luma

pytestmark = pytest.mark.unit


def test_no_profile_returns_neutral_theme():
    assert derive_theme(None) == NEUTRAL_THEME
    assert derive_theme([]) == NEUTRAL_THEME
    assert NEUTRAL_THEME.colors.primary == "#FFFFFF"
    assert NEUTRAL_THEME.colors.secondary == "#A3A3A3"
    assert NEUTRAL_THEME.colors.text_on_primary == "black"


def test_every_category_has_a_color():
    assert set(CATEGORY_COLORS) == set(RiasecType)
    assert category_color("social") == "#10B981"


def test_top_two_drive_primary_secondary_and_accent():
    theme = derive_theme([RiasecType.ARTISTIC, RiasecType.SOCIAL, RiasecType.REALISTIC])

    assert theme.colors.primary == "#EC4899"
    assert theme.colors.secondary == "#10B981"
    assert theme.colors.accent == "#10B981"
    assert theme.gradients.primary == "linear-gradient(135deg, #EC4899, #10B981)"


def test_shadows_compose_primary_and_secondary_rgb():
    theme = derive_theme(["artistic", "social"])

    assert theme.shadows.sm == "0 4px 12px rgba(236, 72, 153, 0.2), 0 2px 4px rgba(16, 185, 129, 0.1)"
    assert theme.shadows.md == "0 8px 24px rgba(236, 72, 153, 0.3), 0 4px 8px rgba(16, 185, 129, 0.2)"
    assert theme.shadows.lg == "0 16px 48px rgba(236, 72, 153, 0.4), 0 8px 16px rgba(16, 185, 129, 0.3)"


def test_single_category_reuses_top_color():
    theme = derive_theme([RiasecType.CONVENTIONAL])
    assert theme.colors.primary == theme.colors.secondary == theme.colors.accent == "#06B6D4"


def test_fixed_palette_is_kept():
    theme = derive_theme([RiasecType.REALISTIC, RiasecType.SOCIAL])
    assert theme.colors.background == "#121212"
    assert theme.colors.surface == "#1E1E1E"
    assert theme.colors.text_muted == "#9CA3AF"


@pytest.mark.parametrize(
    ("category", "expected"),
    [
        (RiasecType.REALISTIC, "black"),
        (RiasecType.ENTERPRISING, "black"),
        (RiasecType.INVESTIGATIVE, "white"),
        (RiasecType.ARTISTIC, "black"),
        (RiasecType.SOCIAL, "black"),
    ],
)
def test_text_on_primary_follows_luma(category, expected):
    theme = derive_theme([category, RiasecType.SOCIAL])
    assert theme.colors.text_on_primary == expected


def test_contrast_boundary():
    assert luma(*hex_to_rgb("#808080")) == 128
    assert contrast_text("#808080") == "black"
    assert luma(*hex_to_rgb("#7F7F7F")) == 127
    assert contrast_text("#7F7F7F") == "white"


def test_malformed_color_defaults_to_black_text():
    assert contrast_text("not-a-color") == "black"
    with pytest.raises(ValueError):
        hex_to_rgb("#12345")


def test_derivation_is_referentially_transparent():
    ranked = [RiasecType.INVESTIGATIVE, RiasecType.ENTERPRISING]
    first = derive_theme(ranked)
    second = derive_theme(list(ranked))
    assert first == second
    assert first.model_dump_json() == second.model_dump_json()


def test_theme_serializes_camel_case():
    dumped = derive_theme(["social", "artistic"]).model_dump(by_alias=True)
    assert "textOnPrimary" in dumped["colors"]
    assert "textMuted" in dumped["colors"]
