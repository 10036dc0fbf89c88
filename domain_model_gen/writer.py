from __future__ import annotations

from pathlib import Path

from .diagrams.render_config import DiagramFormat
from .mermaid_fmt import mermaid_block
from .plantuml_fmt import plantuml_block


def diagram_block(code: str, fmt: DiagramFormat) -> str:
    if fmt is DiagramFormat.PLANTUML:
        return plantuml_block(code)
    return mermaid_block(code)


def write_md(path: Path, title: str, diagram_code: str, fmt: DiagramFormat = DiagramFormat.MERMAID) -> None:
    """Write a titled Markdown file containing a fenced diagram block."""
    path.parent.mkdir(parents=True, exist_ok=True)
    content = f"# {title}\n\n{diagram_block(diagram_code, fmt)}"
    path.write_text(content, encoding="utf-8")


def write_text_md(path: Path, title: str, body_md: str) -> None:
    """Write a titled Markdown file containing arbitrary Markdown body.

    This is intentionally separate from write_md(), which always wraps the body
    as a diagram block.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    body = (body_md or "").rstrip() + "\n"
    content = f"# {title}\n\n{body}"
    path.write_text(content, encoding="utf-8")


def write_diagram_source(path: Path, diagram_code: str) -> None:
    """Write raw diagram source (`.mmd` / `.puml`)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(diagram_code.rstrip() + "\n", encoding="utf-8")
