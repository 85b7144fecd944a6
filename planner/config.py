from __future__ import annotations

from pathlib import Path
import json


BASE_DIR = Path(__file__).resolve().parents[1]
OUT_DIR = BASE_DIR / "out"
DB_PATH = OUT_DIR / "planner.db"
STYLE_PRESET_PATH = BASE_DIR / "assets" / "brand" / "template_styles.json"

# 5mm dot grid on US Letter (points): 43 x 55 boxes
DOT_SPACING = 14.17
PAGE_WIDTH = 612.0
PAGE_HEIGHT = 792.0
GRID_COLS = int(PAGE_WIDTH // DOT_SPACING)
GRID_ROWS = int(PAGE_HEIGHT // DOT_SPACING)

DEFAULT_THEME = "light"
DEFAULT_RECIPE = "standard_planner"
PREVIEW_PAGES = (0, 1, 2)


def load_style_preset() -> dict:
    with STYLE_PRESET_PATH.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def set_out_dir(path: Path) -> None:
    global OUT_DIR, DB_PATH
    OUT_DIR = path
    DB_PATH = OUT_DIR / "planner.db"
