from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import Iterable, Optional

from slugify import slugify

from . import config
from .models import Artifact, PlannerBuild, get_session


ARTIFACT_NAMES = {
    "pdf_a4": "a4.pdf",
    "pdf_letter": "letter.pdf",
    "preview_1": "preview_1.png",
    "preview_2": "preview_2.png",
    "preview_3": "preview_3.png",
    "manifest": "manifest.json",
    "error": "error.log",
}


def build_slug(title: str, year: int, theme: str) -> str:
    parts = [title] if str(year) in title else [title, str(year)]
    text = " ".join(parts + [theme])
    slug = slugify(text, max_length=80, word_boundary=True)
    slug = re.sub(r"[^a-z0-9-]+", "-", slug.lower()).strip("-")
    if not slug:
        slug = hashlib.md5(text.encode("utf-8")).hexdigest()[:12]
    if ".." in slug or "/" in slug or "\\" in slug:
        raise ValueError("Invalid slug generated from title")
    return slug


def build_dir(slug: str, base_dir: Optional[Path] = None, include_slug: bool = True) -> Path:
    root = base_dir or config.OUT_DIR
    path = root / slug if include_slug else root
    path.mkdir(parents=True, exist_ok=True)
    return path


def artifact_path(
    slug: str,
    artifact_type: str,
    base_dir: Optional[Path] = None,
    include_slug: bool = True,
) -> Path:
    filename = ARTIFACT_NAMES[artifact_type]
    return build_dir(slug, base_dir=base_dir, include_slug=include_slug) / filename


def record_artifacts(build: PlannerBuild, artifacts: Iterable[tuple[str, Path]]) -> None:
    with get_session() as session:
        for artifact_type, path in artifacts:
            session.add(
                Artifact(
                    build_id=build.id,
                    type=artifact_type,
                    path=str(path.relative_to(config.OUT_DIR)),
                )
            )
        session.commit()
