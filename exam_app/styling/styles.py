"""Centralized styles and font definitions for the application."""

from exam_app.core.models import DisplayState

from .color_palette import ColorPalette, Theme, palette_colors


class Styles:
    """Helper class to generate Qt stylesheets based on the current theme."""

    @staticmethod
    def get_main_window_style(theme: Theme = Theme.LIGHT) -> str:
        border = ColorPalette.BORDER_PRIMARY.get(theme)
        accent = ColorPalette.BUTTON_PRIMARY_BG.get(theme)
        rules = {
            "QMainWindow, QWidget": (
                f"background-color: {ColorPalette.BACKGROUND_PRIMARY.get(theme)};"
                f" color: {ColorPalette.TEXT_PRIMARY.get(theme)};"
                " font-family: 'Segoe UI', 'Roboto', sans-serif;"
            ),
            "QPushButton": (
                f"background-color: {ColorPalette.BUTTON_SECONDARY_BG.get(theme)};"
                f" border: 1px solid {border}; border-radius: 4px; padding: 6px 14px;"
            ),
            "QPushButton:hover": f"background-color: {ColorPalette.BUTTON_HOVER_BG.get(theme)};",
            # Submit and Start carry the "primary" dynamic property.
            'QPushButton:checked, QPushButton[primary="true"]': (
                f"background-color: {accent}; border-color: {accent};"
                f" color: {ColorPalette.BUTTON_PRIMARY_TEXT.get(theme)};"
            ),
            "QPushButton:disabled": f"color: {ColorPalette.TEXT_SECONDARY.get(theme)};",
            "QLineEdit, QSpinBox": f"border: 1px solid {border}; border-radius: 4px; padding: 4px;",
            "QRadioButton": "padding: 3px 0;",
            "QGroupBox": f"border: 1px solid {border}; border-radius: 6px; margin-top: 8px; padding-top: 12px;",
            "QGroupBox::title": "subcontrol-origin: margin; left: 8px; padding: 0 4px;",
        }
        return "\n".join(f"{selector} {{ {body} }}" for selector, body in rules.items())

    @staticmethod
    def get_palette_button_style(state: DisplayState, is_current: bool, theme: Theme = Theme.LIGHT) -> str:
        background, text = palette_colors(state, theme)
        border = (
            f"2px solid {ColorPalette.PALETTE_CURRENT_BORDER.get(theme)}"
            if is_current
            else f"1px solid {ColorPalette.BORDER_PRIMARY.get(theme)}"
        )
        return (
            f"QPushButton {{ background-color: {background}; color: {text}; border: {border};"
            " border-radius: 4px; min-width: 32px; min-height: 28px; padding: 0; }"
        )

    @staticmethod
    def get_timer_style(font_size: int, warning: bool, theme: Theme = Theme.LIGHT) -> str:
        base = f"padding: 2px 8px; border-radius: 4px; font-size: {font_size}pt; font-weight: bold;"
        if not warning:
            return base
        return base + f" color: #FFFFFF; background-color: {ColorPalette.ERROR.get(theme)};"

    @staticmethod
    def get_large_label_style() -> str:
        return "font-size: 16pt; font-weight: bold;"
