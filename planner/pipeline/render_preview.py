from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import fitz  # PyMuPDF

from .. import config
from ..storage import artifact_path


def pick_preview_pages(page_count: int, wanted: Sequence[int] = config.PREVIEW_PAGES) -> Tuple[int, ...]:
    """Clamp the wanted 0-based indexes to the document; short documents repeat the last page."""
    if page_count <= 0:
        return ()
    return tuple(min(max(int(index), 0), page_count - 1) for index in wanted)


def _render_page_to_png(doc: fitz.Document, page_index: int, out_path: Path, min_px: int = 1600) -> None:
    page = doc.load_page(page_index)

    # scale so the short side comes out at least min_px wide
    rect = page.rect
    short_side = min(rect.width, rect.height)
    zoom = max(2.0, min_px / float(short_side))
    mat = fitz.Matrix(zoom, zoom)

    pix = page.get_pixmap(matrix=mat, alpha=False)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    pix.save(str(out_path))


def render_previews(
    slug: str,
    pdf_path: Path,
    pages: Sequence[int] = config.PREVIEW_PAGES,
    base_dir: Optional[Path] = None,
    include_slug: bool = True,
) -> List[Path]:
    out: List[Path] = []
    with fitz.open(pdf_path) as doc:
        for number, index in enumerate(pick_preview_pages(doc.page_count, pages), start=1):
            path = artifact_path(slug, f"preview_{number}", base_dir=base_dir, include_slug=include_slug)
            _render_page_to_png(doc, index, path)
            out.append(path)
    return out
