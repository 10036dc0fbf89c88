from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Literal, Optional, Union

from .collaborators import ImageRenderer, ModelStore, Publisher, SourceUrls
from .constants import (
    DIAGRAM_FILE_STEM_SUFFIX,
    IMAGE_HEIGHT_DEFAULT,
    IMAGE_WIDTH_DEFAULT,
    MODEL_FILE_SUFFIXES,
)
from .diagrams.registry import render_diagram, render_process_diagram
from .diagrams.render_config import DiagramFormat, RenderConfig
from .diagrams.sequence import list_processes
from .errors import ModelGenError
from .io import load_model
from .logging_config import get_logger
from .model import Clock, DomainModel
from .model_view import slugify
from .validate import validate_model
from .writer import write_diagram_source, write_md, write_text_md

logger = get_logger(__name__)


def build_source_url(
    repository_url: str,
    branch: str,
    file_path: Union[str, Path],
    base_dir: Optional[Union[str, Path]] = None,
) -> str:
    """Browsable web URL of a file in a GitHub/GitLab-style repository.

    `repository_url` may be a clone URL (`.git` suffix, `git@host:org/repo`).
    Paths under `base_dir` are made relative to it; other absolute paths keep
    their last two segments (`folder/file`).
    """
    if not repository_url:
        return ""

    base = repository_url.strip()
    if base.endswith(".git"):
        base = base[: -len(".git")]
    if base.startswith("git@"):
        host, _, repo_path = base[len("git@"):].partition(":")
        base = f"https://{host}/{repo_path}"
    base = base.rstrip("/")

    path = str(file_path).replace("\\", "/")
    if base_dir is not None:
        base_str = str(base_dir).replace("\\", "/").rstrip("/")
        if path.startswith(base_str + "/"):
            path = path[len(base_str) + 1:]
    if path.startswith("/"):
        path = "/".join(PurePosixPath(path).parts[-2:])
    path = path.lstrip("/")

    if "gitlab" in base:
        return f"{base}/-/blob/{branch}/{path}"
    return f"{base}/blob/{branch}/{path}"


@dataclass(frozen=True)
class WorkflowResult:
    model: DomainModel
    diagram: str
    format: DiagramFormat
    model_location: str
    diagram_location: str
    diagram_written: bool
    image: Optional[bytes] = None
    page_id: Optional[str] = None


def run_model_workflow(
    model: DomainModel,
    cfg: Optional[RenderConfig] = None,
    *,
    store: ModelStore,
    publisher: Optional[Publisher] = None,
    image_renderer: Optional[ImageRenderer] = None,
    repository_url: Optional[str] = None,
    branch: str = "main",
    base_dir: Optional[Union[str, Path]] = None,
    image_size: tuple[int, int] = (IMAGE_WIDTH_DEFAULT, IMAGE_HEIGHT_DEFAULT),
    force: bool = False,
    clock: Optional[Clock] = None,
) -> WorkflowResult:
    """Validate, render, store and optionally image/publish one model.

    An already stored diagram is kept unless `force` is set; the diagram is
    still rendered so that it can be imaged and published.
    """
    cfg = cfg or RenderConfig()
    validate_model(model)

    output = render_diagram(model, cfg, clock=clock)
    diagram_name = f"{slugify(model.name)}{DIAGRAM_FILE_STEM_SUFFIX}"

    model_location = store.save_model(model)
    if store.diagram_exists(diagram_name, output.format) and not force:
        logger.info("Diagram %s already stored; skipping write", diagram_name)
        diagram_location = store.locate_diagram(diagram_name, output.format)
        written = False
    else:
        diagram_location = store.save_diagram(output.content, diagram_name, output.format)
        written = True

    image: Optional[bytes] = None
    if image_renderer is not None:
        width, height = image_size
        image = image_renderer.render(output.content, output.format, width, height)

    page_id: Optional[str] = None
    if publisher is not None:
        urls = SourceUrls(
            model_url=build_source_url(repository_url, branch, model_location, base_dir),
            diagram_url=build_source_url(repository_url, branch, diagram_location, base_dir),
        )
        page_id = publisher.publish(model, output.content, output.format, urls)
        logger.info("Model %r published; page id %s", model.name, page_id)

    return WorkflowResult(
        model=model,
        diagram=output.content,
        format=output.format,
        model_location=model_location,
        diagram_location=diagram_location,
        diagram_written=written,
        image=image,
        page_id=page_id,
    )


@dataclass(frozen=True)
class SuiteConfig:
    render: RenderConfig = field(default_factory=RenderConfig)
    formats: tuple[DiagramFormat, ...] = (DiagramFormat.MERMAID,)
    include_processes: bool = True
    write_index: bool = True


@dataclass(frozen=True)
class SuiteEntry:
    input_file: str
    model_name: str
    status: Literal["success", "failed"]
    outputs: tuple[str, ...] = ()
    error: Optional[str] = None


def _discover_model_files(input_dir: Path) -> list[Path]:
    return sorted(
        p for p in input_dir.iterdir() if p.is_file() and p.suffix.lower() in MODEL_FILE_SUFFIXES
    )


def _preflight_suite(files: list[Path]) -> None:
    """Fail fast on conditions that would cause destructive overwrites."""
    seen: dict[str, Path] = {}
    for path in files:
        stem = slugify(path.stem)
        if stem in seen:
            raise ValueError(
                f"model files {seen[stem].name!r} and {path.name!r} map to the same "
                f"output directory {stem!r}"
            )
        seen[stem] = path


def _md_table_cell(text: str) -> str:
    """Escape a string for use in a Markdown table cell."""
    s = (text or "").replace("\r", " ").replace("\n", " ").strip()
    return s.replace("|", "\\|")


def _render_model_outputs(
    path: Path, out_dir: Path, cfg: SuiteConfig, clock: Optional[Clock]
) -> tuple[DomainModel, list[str]]:
    model = load_model(path)
    validate_model(model)

    stem = slugify(path.stem)
    model_dir = out_dir / stem
    outputs: list[str] = []
    for fmt in cfg.formats:
        output = render_diagram(model, dataclasses.replace(cfg.render, grammar=fmt), clock=clock)
        source_path = model_dir / f"{stem}{DIAGRAM_FILE_STEM_SUFFIX}{output.file_extension}"
        md_path = model_dir / f"{stem}{DIAGRAM_FILE_STEM_SUFFIX}-{fmt.value}.md"
        write_diagram_source(source_path, output.content)
        write_md(md_path, output.title, output.content, fmt)
        outputs.extend(
            [source_path.relative_to(out_dir).as_posix(), md_path.relative_to(out_dir).as_posix()]
        )
    return model, outputs


def generate_suite(
    input_dir: Path,
    out_dir: Path,
    cfg: Optional[SuiteConfig] = None,
    *,
    clock: Optional[Clock] = None,
) -> list[SuiteEntry]:
    """Render every model file in `input_dir` into `out_dir/<model>/`.

    Files are processed in sorted order. A model that fails to load or
    validate is recorded as failed and the batch continues. Outputs:
      - <model>/<model>-diagram.<ext> and a Markdown page per format
      - processes/<process>.<ext> per format (when include_processes)
      - index.md listing every model and its status (when write_index)
    """
    cfg = cfg or SuiteConfig()
    if not input_dir.is_dir():
        raise FileNotFoundError(f"Input directory not found: {input_dir}")

    files = _discover_model_files(input_dir)
    _preflight_suite(files)
    logger.info("Found %d input model files to process", len(files))

    entries: list[SuiteEntry] = []
    for path in files:
        try:
            model, outputs = _render_model_outputs(path, out_dir, cfg, clock)
        except (ModelGenError, OSError) as exc:
            logger.error("Failed to process %s: %s", path.name, exc)
            entries.append(
                SuiteEntry(input_file=path.name, model_name="", status="failed", error=str(exc))
            )
            continue
        logger.info("Processed %s", path.name)
        entries.append(
            SuiteEntry(
                input_file=path.name,
                model_name=model.name,
                status="success",
                outputs=tuple(outputs),
            )
        )

    process_links: list[tuple[str, str]] = []
    if cfg.include_processes:
        for name in list_processes():
            for fmt in cfg.formats:
                output = render_process_diagram(name, fmt)
                rel = f"processes/{name}{output.file_extension}"
                write_diagram_source(out_dir / rel, output.content)
                process_links.append((output.title, rel))

    if cfg.write_index:
        _write_index(out_dir / "index.md", entries, process_links)

    return entries


def _write_index(
    path: Path, entries: list[SuiteEntry], process_links: list[tuple[str, str]]
) -> None:
    lines: list[str] = []
    lines.append("This page lists diagram outputs generated from the domain model files.")
    lines.append("")
    lines.append("| input | model | status | outputs |")
    lines.append("|---|---|---|---|")
    for entry in entries:
        if entry.status == "success":
            links = ", ".join(f"[{_md_table_cell(Path(o).name)}]({o})" for o in entry.outputs)
        else:
            links = _md_table_cell(entry.error or "")
        lines.append(
            "| "
            + " | ".join(
                [
                    _md_table_cell(entry.input_file),
                    _md_table_cell(entry.model_name),
                    entry.status,
                    links,
                ]
            )
            + " |"
        )

    if process_links:
        lines.append("")
        lines.append("Process sequence diagrams:")
        for title, rel in process_links:
            lines.append(f"- [{_md_table_cell(title)}]({rel})")

    write_text_md(path, title="Domain model diagrams", body_md="\n".join(lines))
