from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import json
import logging
import shutil
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from .. import config
from .. import recipes  # noqa: F401  registers the built-in planner definitions
from ..document.builder import BuildResult, OutlineNode, PageRenderError
from ..document.context import get_planner
from ..document.declarations import DeclarationError
from ..document.page_set import PageSetFinalizedError
from ..document.registry import DuplicateDestinationError, RegistryStateError
from ..layout.nodes import LayoutError
from ..models import BuildStatus, PlannerBuild, get_session, init_db
from ..storage import artifact_path, build_slug, record_artifacts
from .render_pdf import PAGE_SIZES, render_planner
from .render_preview import render_previews

logger = logging.getLogger(__name__)


@dataclass
class BuildRequest:
    year: int
    theme: str = config.DEFAULT_THEME
    title: Optional[str] = None
    recipe: str = config.DEFAULT_RECIPE
    total_weeks: Optional[int] = None
    previews: bool = True
    debug: bool = False

    @property
    def display_title(self) -> str:
        return self.title or f"Planner {self.year}"

    def params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {"year": self.year, "theme": self.theme, "title": self.display_title}
        if self.total_weeks:
            params["total_weeks"] = self.total_weeks
        return params


def _write_error(slug: str, message: str) -> None:
    error_path = artifact_path(slug, "error", base_dir=config.OUT_DIR)
    error_path.write_text(message, encoding="utf-8")


def _prepare_temp_dir(slug: str) -> Path:
    temp_dir = config.OUT_DIR / f"{slug}.tmp"
    if temp_dir.exists():
        shutil.rmtree(temp_dir)
    temp_dir.mkdir(parents=True, exist_ok=True)
    return temp_dir


def _finalize_artifacts(
    temp_dir: Path,
    final_dir: Path,
    artifacts: List[tuple[str, Path]],
) -> List[tuple[str, Path]]:
    if final_dir.exists():
        shutil.rmtree(final_dir)
    temp_dir.replace(final_dir)
    finalized: List[tuple[str, Path]] = []
    for artifact_type, path in artifacts:
        finalized.append((artifact_type, final_dir / path.relative_to(temp_dir)))
    return finalized


def _outline_dict(node: OutlineNode) -> dict:
    return {
        "title": node.title,
        "dest": node.destination_key,
        "page": node.page_number,
        "children": [_outline_dict(child) for child in node.children],
    }


def build_manifest(result: BuildResult) -> dict:
    labels = {
        decl.destination_key: decl.set_context.label
        for decl in result.pages
        if decl.set_context is not None
    }
    return {
        "title": result.metadata.title,
        "theme": result.theme.name,
        "page_count": result.page_count,
        "destinations": [
            {
                "key": info.destination_key,
                "page": info.page_number,
                "type": info.page_type,
                "params": dict(info.params),
                "label": labels.get(info.destination_key),
            }
            for info in result.registry.destinations()
        ],
        "outline": [_outline_dict(node) for node in result.outline],
    }


def _fail_code(exc: Exception) -> str:
    if isinstance(exc, SQLAlchemyError):
        return "DB_ERROR"
    if isinstance(exc, PageRenderError):
        return "RENDER_ERROR"
    if isinstance(exc, (DeclarationError, DuplicateDestinationError, PageSetFinalizedError,
                        RegistryStateError, LayoutError)):
        return "DECLARATION_ERROR"
    return "PIPELINE_ERROR"


def process_build(request: BuildRequest, slug: str) -> Tuple[List[tuple[str, Path]], BuildResult]:
    definition = get_planner(request.recipe)
    temp_dir = _prepare_temp_dir(slug)
    artifacts: List[tuple[str, Path]] = []
    try:
        pdf_letter = artifact_path(slug, "pdf_letter", base_dir=temp_dir, include_slug=False)
        result = render_planner(definition, pdf_letter, PAGE_SIZES["letter"],
                                debug=request.debug, **request.params())
        pdf_a4 = artifact_path(slug, "pdf_a4", base_dir=temp_dir, include_slug=False)
        render_planner(definition, pdf_a4, PAGE_SIZES["a4"], debug=request.debug, **request.params())
        artifacts.extend([("pdf_letter", pdf_letter), ("pdf_a4", pdf_a4)])

        manifest_path = artifact_path(slug, "manifest", base_dir=temp_dir, include_slug=False)
        manifest_path.write_text(json.dumps(build_manifest(result), indent=2, default=str), encoding="utf-8")
        artifacts.append(("manifest", manifest_path))

        if request.previews:
            previews = render_previews(slug, pdf_letter, base_dir=temp_dir, include_slug=False)
            artifacts.extend((f"preview_{n}", path) for n, path in enumerate(previews, start=1))
    except Exception:
        shutil.rmtree(temp_dir, ignore_errors=True)
        raise

    final_dir = config.OUT_DIR / slug
    return _finalize_artifacts(temp_dir, final_dir, artifacts), result


def _save(build: PlannerBuild) -> None:
    with get_session() as session:
        session.add(build)
        session.commit()
        session.refresh(build)


def run_build(request: BuildRequest) -> PlannerBuild:
    init_db()
    slug = build_slug(request.display_title, request.year, request.theme)
    build = PlannerBuild(
        slug=slug,
        title=request.display_title,
        year=request.year,
        theme=request.theme,
        recipe=request.recipe,
    )
    try:
        artifacts, result = process_build(request, slug)
        build.status = BuildStatus.READY
        build.page_count = result.page_count
        _save(build)
        record_artifacts(build, artifacts)
    except Exception as exc:
        logger.exception("Build error for %s", slug)
        build.status = BuildStatus.FAILED
        build.fail_code = _fail_code(exc)
        build.fail_detail = str(exc) or type(exc).__name__
        _write_error(slug, f"{build.fail_code}: {build.fail_detail}")
        try:
            _save(build)
        except SQLAlchemyError:
            logger.exception("Could not record failed build %s", slug)
        return build

    logger.info("Build %s ready: %d pages", slug, build.page_count)
    return build


def recent_builds(limit: int = 20) -> List[PlannerBuild]:
    init_db()
    with get_session() as session:
        statement = select(PlannerBuild).order_by(PlannerBuild.created_at.desc()).limit(limit)
        return list(session.exec(statement))
