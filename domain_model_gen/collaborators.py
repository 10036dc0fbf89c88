"""Interfaces of the I/O collaborators driven by the workflow.

Only the local filesystem store ships with this package (see `store.py`);
publishing and image rendering are provided by the caller.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .diagrams.render_config import DiagramFormat
from .model import DomainModel


@dataclass(frozen=True)
class SourceUrls:
    """Browsable locations of the stored model and diagram files."""

    model_url: str
    diagram_url: str


class ModelStore(Protocol):
    def save_model(self, model: DomainModel, filename: str | None = None) -> str:
        """Persist the serialized model; return its location."""
        ...

    def save_diagram(self, content: str, name: str, fmt: DiagramFormat) -> str:
        """Persist diagram source tagged with its format; return its location."""
        ...

    def diagram_exists(self, name: str, fmt: DiagramFormat) -> bool: ...

    def locate_diagram(self, name: str, fmt: DiagramFormat) -> str: ...


class Publisher(Protocol):
    def publish(
        self,
        model: DomainModel,
        diagram: str,
        fmt: DiagramFormat,
        urls: SourceUrls,
    ) -> str:
        """Create or update the documentation page; return its opaque id."""
        ...


class ImageRenderer(Protocol):
    def render(self, diagram: str, fmt: DiagramFormat, width: int, height: int) -> bytes: ...
