"""Token vocabularies for the two class-diagram grammars.

A grammar only spells things: it never decides *what* is shown. Traversal
order, visibility markers, cardinality canonicalisation, method lists and
kind styles are owned by `class_diagram` and handed to the grammar ready-made.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from ..mermaid_fmt import (
    INDENT as MM_INDENT,
    mm_class_annotation,
    mm_class_apply,
    mm_class_def,
    mm_class_member,
    mm_class_open,
    mm_class_relation,
    mm_comment,
    mm_init,
)
from ..model import EntityKind
from ..plantuml_fmt import (
    INDENT as PU_INDENT,
    pu_class_member,
    pu_class_open,
    pu_class_relation,
    pu_comment,
    pu_stereotype,
)
from .render_config import DiagramFormat, Direction, RenderConfig


class ArrowStyle(Enum):
    DIRECTED = "directed"
    HOLLOW_DIAMOND = "hollow_diamond"
    FILLED_DIAMOND = "filled_diamond"
    HOLLOW_TRIANGLE = "hollow_triangle"


@dataclass(frozen=True)
class KindStyle:
    css_class: str
    fill: str
    stroke: str
    stroke_width: str = "2px"


def _member_text(marker: str, name: str, type_: str, description: Optional[str], sep: str) -> str:
    text = f"{marker}{sep}{name}: {type_}"
    if description:
        text += f" // {description}"
    return text


class ClassGrammar(ABC):
    fmt: DiagramFormat

    @abstractmethod
    def open(self, cfg: RenderConfig) -> list[str]:
        """Root token, theme and direction directive."""

    def close(self) -> list[str]:
        return []

    @abstractmethod
    def comment(self, text: str) -> str: ...

    @abstractmethod
    def class_open(self, class_id: str, label: str, kind: Optional[EntityKind]) -> list[str]: ...

    @abstractmethod
    def class_close(self) -> str: ...

    @abstractmethod
    def attribute(self, marker: str, name: str, type_: str, description: Optional[str]) -> str: ...

    def method_separator(self) -> Optional[str]:
        return None

    @abstractmethod
    def method(self, name: str) -> str: ...

    @abstractmethod
    def arrow(self, style: ArrowStyle) -> str: ...

    @abstractmethod
    def relation(
        self,
        source: str,
        arrow: str,
        target: str,
        cardinality: Optional[str],
        label: Optional[str],
    ) -> str: ...

    @abstractmethod
    def style_block(
        self,
        styles: Sequence[tuple[EntityKind, KindStyle]],
        styled_entities: Sequence[tuple[str, KindStyle]],
    ) -> list[str]:
        """Static per-kind styles followed by any per-entity application."""


class MermaidClassGrammar(ClassGrammar):
    fmt = DiagramFormat.MERMAID

    _ARROWS = {
        ArrowStyle.DIRECTED: "-->",
        ArrowStyle.HOLLOW_DIAMOND: "o--",
        ArrowStyle.FILLED_DIAMOND: "*--",
        ArrowStyle.HOLLOW_TRIANGLE: "--|>",
    }

    def open(self, cfg: RenderConfig) -> list[str]:
        lines: list[str] = []
        if cfg.theme:
            lines.append(mm_init(theme=cfg.theme))
        lines.append("classDiagram")
        direction = cfg.direction.canonical
        if direction is not Direction.TOP_TO_BOTTOM:
            lines.append(f"{MM_INDENT}direction {direction.value}")
        return lines

    def comment(self, text: str) -> str:
        return mm_comment(text)

    def class_open(self, class_id: str, label: str, kind: Optional[EntityKind]) -> list[str]:
        lines = [mm_class_open(class_id, label)]
        if kind is not None:
            lines.append(mm_class_annotation(kind.value))
        return lines

    def class_close(self) -> str:
        return f"{MM_INDENT}}}"

    def attribute(self, marker: str, name: str, type_: str, description: Optional[str]) -> str:
        # Braces would terminate the class body.
        text = _member_text(marker, name, type_, description, sep="")
        return mm_class_member(text.replace("{", "(").replace("}", ")"))

    def method(self, name: str) -> str:
        return mm_class_member(f"+{name}()")

    def arrow(self, style: ArrowStyle) -> str:
        return self._ARROWS[style]

    def relation(self, source, arrow, target, cardinality, label) -> str:
        return mm_class_relation(source, arrow, target, b_card=cardinality, label=label)

    def style_block(self, styles, styled_entities) -> list[str]:
        lines = [mm_comment("Styling for SIVI AFD entities")]
        for _, style in styles:
            lines.append(
                mm_class_def(
                    style.css_class,
                    f"fill:{style.fill},stroke:{style.stroke},stroke-width:{style.stroke_width}",
                )
            )
        for entity_id, style in styled_entities:
            lines.append(mm_class_apply([entity_id], style.css_class))
        return lines


class PlantUMLClassGrammar(ClassGrammar):
    fmt = DiagramFormat.PLANTUML

    _ARROWS = {
        ArrowStyle.DIRECTED: "-->",
        ArrowStyle.HOLLOW_DIAMOND: "o--",
        ArrowStyle.FILLED_DIAMOND: "*--",
        ArrowStyle.HOLLOW_TRIANGLE: "--|>",
    }

    # PlantUML class diagrams only know two layout directions.
    _DIRECTIONS = {
        Direction.TOP_TO_BOTTOM: "top to bottom direction",
        Direction.BOTTOM_TO_TOP: "top to bottom direction",
        Direction.LEFT_TO_RIGHT: "left to right direction",
        Direction.RIGHT_TO_LEFT: "left to right direction",
    }

    def open(self, cfg: RenderConfig) -> list[str]:
        lines = ["@startuml", f"!theme {cfg.theme or 'plain'}"]
        direction = cfg.direction.canonical
        if direction is not Direction.TOP_TO_BOTTOM:
            lines.append(self._DIRECTIONS[direction])
        return lines

    def close(self) -> list[str]:
        return ["@enduml"]

    def comment(self, text: str) -> str:
        return pu_comment(text)

    def class_open(self, class_id: str, label: str, kind: Optional[EntityKind]) -> list[str]:
        stereotype = pu_stereotype(kind.value) if kind is not None else ""
        return [pu_class_open(class_id, label, stereotype)]

    def class_close(self) -> str:
        return "}"

    def attribute(self, marker: str, name: str, type_: str, description: Optional[str]) -> str:
        return pu_class_member(_member_text(marker, name, type_, description, sep=" "))

    def method_separator(self) -> Optional[str]:
        return f"{PU_INDENT}--"

    def method(self, name: str) -> str:
        return pu_class_member(f"+ {name}()")

    def arrow(self, style: ArrowStyle) -> str:
        return self._ARROWS[style]

    def relation(self, source, arrow, target, cardinality, label) -> str:
        return pu_class_relation(source, arrow, target, b_card=cardinality, label=label)

    def style_block(self, styles, styled_entities) -> list[str]:
        # Stereotypes on the class declarations carry the per-entity binding.
        lines = [pu_comment("Styling for SIVI AFD entities"), "skinparam class {"]
        for kind, style in styles:
            lines.append(f"{PU_INDENT}BackgroundColor<<{kind.value}>> {style.fill}")
            lines.append(f"{PU_INDENT}BorderColor<<{kind.value}>> {style.stroke}")
        lines.append("}")
        return lines


_GRAMMARS: dict[DiagramFormat, ClassGrammar] = {
    DiagramFormat.MERMAID: MermaidClassGrammar(),
    DiagramFormat.PLANTUML: PlantUMLClassGrammar(),
}


def get_class_grammar(fmt: object) -> ClassGrammar:
    """Look up the grammar for a format; raises UnknownGrammarError."""
    return _GRAMMARS[DiagramFormat.parse(fmt)]
