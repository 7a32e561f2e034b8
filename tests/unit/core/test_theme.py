"""Unit tests for theme module.

Tests for theme loading, validation, and Rich theme generation.
"""

# pyright: reportPrivateUsage=false

from pathlib import Path

import pytest
from kennel.core.theme import ThemeColors, _load_toml_colors, get_rich_theme, load_theme
from rich.theme import Theme


class TestThemeColors:
    """Tests for ThemeColors Pydantic model."""

    def test_default_values(self) -> None:
        """ThemeColors has sensible defaults."""
        colors = ThemeColors()
        assert colors.header == "#69B9A1"
        assert colors.pilot == "#d44ebc"

    def test_short_hex_accepted(self) -> None:
        """Three-digit hex codes are valid."""
        assert ThemeColors(muted="#abc").muted == "#abc"

    @pytest.mark.parametrize(
        ("value", "message"),
        [
            ("ffffff", "must start with '#'"),
            ("#ff", "must be #RGB or #RRGGBB"),
            ("#gggggg", "invalid hex color"),
        ],
    )
    def test_invalid_colors(self, value: str, message: str) -> None:
        """Malformed colors are rejected."""
        with pytest.raises(ValueError, match=message):
            ThemeColors(text=value)

    def test_extra_fields_forbidden(self) -> None:
        """ThemeColors rejects unknown fields."""
        with pytest.raises(ValueError):
            ThemeColors(unknown_field="#ffffff")  # type: ignore[call-arg]


class TestLoadTheme:
    """Tests for theme file loading."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        """No override file means default colors."""
        assert _load_toml_colors(tmp_path / "absent.toml") is None
        assert load_theme(tmp_path / "absent.toml") == ThemeColors()

    def test_override_applied(self, tmp_path: Path) -> None:
        """Colors in the override file replace defaults."""
        path = tmp_path / "theme.toml"
        path.write_text('[colors]\nlive = "#00ff00"\n')
        colors = load_theme(path)
        assert colors.live == "#00ff00"
        assert colors.header == ThemeColors().header

    def test_invalid_override_falls_back(self, tmp_path: Path) -> None:
        """An invalid override leaves the defaults in place."""
        path = tmp_path / "theme.toml"
        path.write_text('[colors]\nlive = "green"\n')
        assert load_theme(path) == ThemeColors()

    def test_broken_toml_falls_back(self, tmp_path: Path) -> None:
        """Unparseable TOML is ignored."""
        path = tmp_path / "theme.toml"
        path.write_text("invalid toml [[[")
        assert _load_toml_colors(path) is None


class TestGetRichTheme:
    """Tests for get_rich_theme."""

    def test_styles_present(self) -> None:
        """Every style used by the tables is defined."""
        theme = get_rich_theme(ThemeColors())
        assert isinstance(theme, Theme)
        for name in ("bold_header", "border", "muted", "pilot", "live", "added", "removed"):
            assert name in theme.styles
