"""Output format, layout direction and render toggles."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..errors import UnknownGrammarError


class DiagramFormat(Enum):
    """Supported textual diagram grammars."""

    MERMAID = "mermaid"
    PLANTUML = "plantuml"

    @classmethod
    def parse(cls, value: object) -> "DiagramFormat":
        if isinstance(value, cls):
            return value
        for fmt in cls:
            if isinstance(value, str) and value.strip().lower() == fmt.value:
                return fmt
        raise UnknownGrammarError(value, [f.value for f in cls])

    @property
    def file_extension(self) -> str:
        return _EXTENSIONS[self]


_EXTENSIONS = {
    DiagramFormat.MERMAID: ".mmd",
    DiagramFormat.PLANTUML: ".puml",
}


class Direction(Enum):
    """Layout direction. TD is an alias of TB."""

    TOP_TO_BOTTOM = "TB"
    TOP_DOWN = "TD"
    BOTTOM_TO_TOP = "BT"
    LEFT_TO_RIGHT = "LR"
    RIGHT_TO_LEFT = "RL"

    @classmethod
    def parse(cls, value: object) -> "Direction":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(
                f"Unknown direction {value!r}; expected one of: "
                + ", ".join(d.value for d in cls)
            ) from None

    @property
    def canonical(self) -> "Direction":
        return Direction.TOP_TO_BOTTOM if self is Direction.TOP_DOWN else self


@dataclass(frozen=True)
class RenderConfig:
    grammar: DiagramFormat = DiagramFormat.MERMAID
    direction: Direction = Direction.TOP_TO_BOTTOM
    show_attributes: bool = True
    show_methods: bool = False
    show_relationships: bool = True
    include_metadata_header: bool = True
    theme: Optional[str] = None

    def __post_init__(self) -> None:
        # Accept plain strings such as "plantuml" or "LR".
        object.__setattr__(self, "grammar", DiagramFormat.parse(self.grammar))
        object.__setattr__(self, "direction", Direction.parse(self.direction))
