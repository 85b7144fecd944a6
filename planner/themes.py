from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class Theme:
    name: str
    display_name: str
    background: str
    dot_grid: str
    borders: str
    section_headers: str
    weekend_bg: str
    text_black: str
    text_gray: str
    empty_cell_overlay: str
    diagnostic_red: str
    diagnostic_label_bg: str

    def style_overrides(self) -> Dict[str, str]:
        """Theme colours as keys of the style preset, merged over it at render time."""
        return {
            "background_color": self.background,
            "grid_color": self.dot_grid,
            "border_color": self.borders,
            "header_color": self.section_headers,
            "weekend_fill": self.weekend_bg,
            "primary_color": self.text_black,
            "secondary_color": self.text_gray,
            "overlay_color": self.empty_cell_overlay,
            "debug_color": self.diagnostic_red,
        }


THEMES: Dict[str, Theme] = {
    "light": Theme(
        name="light",
        display_name="Light",
        background="#FFFFFF",
        dot_grid="#CCCCCC",
        borders="#E5E5E5",
        section_headers="#AAAAAA",
        weekend_bg="#CCCCCC",
        text_black="#000000",
        text_gray="#888888",
        empty_cell_overlay="#000000",
        diagnostic_red="#FF0000",
        diagnostic_label_bg="#FFFFFF",
    ),
    "earth": Theme(
        name="earth",
        display_name="Earth",
        background="#F5F1E8",
        dot_grid="#758C74",
        borders="#D4CDB8",
        section_headers="#8B9A8B",
        weekend_bg="#758C74",
        text_black="#696953",
        text_gray="#6B7565",
        empty_cell_overlay="#758C74",
        diagnostic_red="#D97757",
        diagnostic_label_bg="#F5F1E8",
    ),
    "dark": Theme(
        name="dark",
        display_name="Dark",
        background="#1E1E1E",
        dot_grid="#505050",
        borders="#555555",
        section_headers="#888888",
        weekend_bg="#505050",
        text_black="#B0B0B0",
        text_gray="#A0A0A0",
        empty_cell_overlay="#000000",
        diagnostic_red="#FF6B6B",
        diagnostic_label_bg="#2A2A2A",
    ),
}


def available_themes() -> List[str]:
    return sorted(THEMES)


def get_theme(name: str) -> Theme:
    theme = THEMES.get(str(name).lower())
    if theme is None:
        raise ValueError(f"Unknown theme: {name}. Available themes: {', '.join(available_themes())}")
    return theme
