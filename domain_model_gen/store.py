from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from .constants import MODEL_FILE_SUFFIX
from .diagrams.render_config import DiagramFormat
from .io import dump_model, load_model
from .logging_config import get_logger
from .model import DomainModel
from .model_view import slugify
from .writer import write_diagram_source

logger = get_logger(__name__)


class FileModelStore:
    """Filesystem-backed model store.

    Layout under `root`:
      models/<slug>.model.json
      diagrams/<name>.mmd | diagrams/<name>.puml
    """

    def __init__(
        self,
        root: Union[str, Path],
        models_dirname: str = "models",
        diagrams_dirname: str = "diagrams",
    ):
        self.root = Path(root)
        self.models_dir = self.root / models_dirname
        self.diagrams_dir = self.root / diagrams_dirname

    def model_path(self, model_name: str) -> Path:
        return self.models_dir / f"{slugify(model_name)}{MODEL_FILE_SUFFIX}"

    def diagram_path(self, name: str, fmt: DiagramFormat) -> Path:
        return self.diagrams_dir / f"{slugify(name)}{fmt.file_extension}"

    def save_model(self, model: DomainModel, filename: Optional[str] = None) -> str:
        path = self.models_dir / filename if filename else self.model_path(model.name)
        dump_model(model, path)
        return str(path)

    def save_diagram(self, content: str, name: str, fmt: DiagramFormat) -> str:
        path = self.diagram_path(name, fmt)
        write_diagram_source(path, content)
        logger.info("Saved %s diagram to %s", fmt.value, path)
        return str(path)

    def diagram_exists(self, name: str, fmt: DiagramFormat) -> bool:
        return self.diagram_path(name, fmt).is_file()

    def locate_diagram(self, name: str, fmt: DiagramFormat) -> str:
        return str(self.diagram_path(name, fmt))

    def list_models(self) -> list[str]:
        """Slugs of stored models, sorted."""
        if not self.models_dir.is_dir():
            return []
        return sorted(
            p.name[: -len(MODEL_FILE_SUFFIX)]
            for p in self.models_dir.glob(f"*{MODEL_FILE_SUFFIX}")
        )

    def load_model(self, slug: str) -> DomainModel:
        path = self.models_dir / f"{slug}{MODEL_FILE_SUFFIX}"
        if not path.is_file():
            raise FileNotFoundError(f"Model not found: {slug}")
        return load_model(path)
