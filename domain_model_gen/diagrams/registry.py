from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from ..logging_config import get_logger
from ..model import Clock, DomainModel
from .class_diagram import render_class_diagram
from .render_config import DiagramFormat, RenderConfig
from .sequence import get_process, render_sequence

logger = get_logger(__name__)


class DiagramType(Enum):
    CLASS = "class"
    SEQUENCE = "sequence"


@dataclass(frozen=True)
class DiagramOutput:
    """Rendered diagram source plus what is needed to store or publish it."""

    content: str
    format: DiagramFormat
    diagram_type: DiagramType
    title: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def file_extension(self) -> str:
        return self.format.file_extension


def render_diagram(
    model: DomainModel,
    cfg: Optional[RenderConfig] = None,
    *,
    clock: Optional[Clock] = None,
) -> DiagramOutput:
    """Render the class diagram of `model` in the grammar chosen by `cfg`."""
    cfg = cfg or RenderConfig()
    logger.info("Generating %s diagram for model: %s", cfg.grammar.value, model.name)
    content = render_class_diagram(model, cfg, clock=clock)
    return DiagramOutput(
        content=content,
        format=cfg.grammar,
        diagram_type=DiagramType.CLASS,
        title=f"{model.name} - Domain Model",
        metadata={"model": model.name, "version": model.version, "entities": len(model.entities)},
    )


def render_process_diagram(
    name: str, fmt: Union[DiagramFormat, str] = DiagramFormat.MERMAID
) -> DiagramOutput:
    """Render a built-in process template as a sequence diagram."""
    grammar = DiagramFormat.parse(fmt)
    process = get_process(name)
    return DiagramOutput(
        content=render_sequence(name, grammar),
        format=grammar,
        diagram_type=DiagramType.SEQUENCE,
        title=process.title,
        metadata={"process": name, "steps": len(process.steps)},
    )
