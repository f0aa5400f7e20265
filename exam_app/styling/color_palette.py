"""Color palette for ExamQt: base theme colours plus question-palette states."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from exam_app.core.models import DisplayState


class Theme(Enum):
    """Application theme options."""
    LIGHT = auto()
    DARK = auto()


@dataclass(frozen=True)
class ThemeColors:
    """Color definitions for a specific theme."""
    light: str
    dark: str

    def get(self, theme: Theme) -> str:
        return self.light if theme == Theme.LIGHT else self.dark


class ColorPalette:
    """Centralized color definitions for the application."""

    TEXT_PRIMARY = ThemeColors(light="#1F2933", dark="#F5F5F5")
    TEXT_SECONDARY = ThemeColors(light="#666666", dark="#AAAAAA")

    BACKGROUND_PRIMARY = ThemeColors(light="#FFFFFF", dark="#1E1E1E")
    BACKGROUND_SECONDARY = ThemeColors(light="#F5F5F5", dark="#2D2D2D")

    ACCENT_PRIMARY = ThemeColors(light="#0078D4", dark="#4A9EFF")

    # Score bands and timer warning
    SUCCESS = ThemeColors(light="#107C10", dark="#6FCF6F")
    WARNING = ThemeColors(light="#B37A00", dark="#FFC83D")
    ERROR = ThemeColors(light="#D13438", dark="#FF6B6B")

    BORDER_PRIMARY = ThemeColors(light="#D1D1D1", dark="#555555")

    BUTTON_PRIMARY_BG = ThemeColors(light="#0078D4", dark="#4A9EFF")
    BUTTON_PRIMARY_TEXT = ThemeColors(light="#FFFFFF", dark="#000000")
    BUTTON_SECONDARY_BG = ThemeColors(light="#F5F5F5", dark="#3A3A3A")
    BUTTON_HOVER_BG = ThemeColors(light="#E8E8E8", dark="#505050")

    # Question palette
    PALETTE_UNANSWERED = ThemeColors(light="#E8E8E8", dark="#3A3A3A")
    PALETTE_ANSWERED = ThemeColors(light="#2E9E44", dark="#3FBF5A")
    PALETTE_MARKED = ThemeColors(light="#7A4FD1", dark="#9C7BFF")
    PALETTE_ANSWERED_AND_MARKED = ThemeColors(light="#1F6FB2", dark="#4A9EFF")
    PALETTE_CURRENT_BORDER = ThemeColors(light="#FF8C00", dark="#FFB347")


_PALETTE_BY_STATE = {
    DisplayState.UNANSWERED: ColorPalette.PALETTE_UNANSWERED,
    DisplayState.ANSWERED: ColorPalette.PALETTE_ANSWERED,
    DisplayState.MARKED: ColorPalette.PALETTE_MARKED,
    DisplayState.ANSWERED_AND_MARKED: ColorPalette.PALETTE_ANSWERED_AND_MARKED,
}


def palette_colors(state: DisplayState, theme: Theme = Theme.LIGHT) -> tuple[str, str]:
    """Background and text colour for a palette button in the given state."""
    background = _PALETTE_BY_STATE[state].get(theme)
    if state is DisplayState.UNANSWERED:
        return background, ColorPalette.TEXT_PRIMARY.get(theme)
    return background, "#FFFFFF"


def score_color(band: str, theme: Theme = Theme.LIGHT) -> str:
    """Colour for a score band as returned by ``score_band``."""
    colors = {
        "success": ColorPalette.SUCCESS,
        "warning": ColorPalette.WARNING,
        "error": ColorPalette.ERROR,
    }
    if band not in colors:
        return ColorPalette.TEXT_SECONDARY.get(theme)
    return colors[band].get(theme)
