"""Styling module for the ExamQt application."""

from .color_palette import ColorPalette, Theme, palette_colors, score_color

__all__ = ["ColorPalette", "Theme", "palette_colors", "score_color"]
