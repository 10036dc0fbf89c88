# domain_model_gen/io.py
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .constants import AUTHOR_DEFAULT, MODEL_VERSION_DEFAULT, SCHEMA_VERSION_DEFAULT
from .errors import ModelFormatError
from .logging_config import get_logger
from .model import (
    Attribute,
    Clock,
    DomainModel,
    Entity,
    ModelMetadata,
    Relationship,
    iso_timestamp,
)
from .validate import validate_model

logger = get_logger(__name__)


def _sanitize_yaml_for_pyyaml(raw: str) -> tuple[str, list[tuple[int, str, str]]]:
    """Return (sanitized_yaml, changes).

    Each change is (line_number_1_based, original_line, new_line).
    """
    changes: list[tuple[int, str, str]] = []
    out_lines: list[str] = []

    for i, line in enumerate(raw.splitlines(), start=1):
        match = re.match(
            r"^(\s*(?:-\s*)?(?:description|name|example|title):\s*)(.+)$",
            line,
        )
        if not match:
            out_lines.append(line)
            continue

        prefix, value = match.group(1), match.group(2)

        # Already quoted or a block scalar.
        if value.startswith(("'", '"', "|", ">")):
            out_lines.append(line)
            continue

        # PyYAML rejects plain scalars containing ":" followed by whitespace or EOL
        # (e.g., "Coverage: own risk"). Preserve any trailing inline comment.
        body, comment = value, ""
        m = re.match(r"^(.*?)(\s+#.*)$", value)
        if m:
            body, comment = m.group(1), m.group(2)

        if re.search(r":(?=\s|$)", body):
            escaped = body.replace("\\", "\\\\").replace('"', '\\"')
            new_line = f'{prefix}"{escaped}"{comment}'
            out_lines.append(new_line)
            if new_line != line:
                changes.append((i, line, new_line))
        else:
            out_lines.append(line)

    sanitized = "\n".join(out_lines) + ("\n" if raw.endswith("\n") else "")
    return sanitized, changes


def _load_mapping(path: Path) -> dict[str, Any]:
    """Parse a YAML (or JSON, which YAML accepts) file into a mapping."""
    raw = path.read_text(encoding="utf-8")

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError:
        sanitized, changes = _sanitize_yaml_for_pyyaml(raw)
        try:
            data = yaml.safe_load(sanitized)
        except yaml.YAMLError as e2:
            raise ModelFormatError(f"Failed to parse {path}: {e2}") from e2

        if changes:
            logger.warning(
                "parsed %s after sanitizing %d line(s); consider quoting values "
                "containing ':' followed by whitespace",
                path,
                len(changes),
            )
            for ln, old, new in changes[:10]:
                logger.warning("%s:%d: %s -> %s", path, ln, old.strip(), new.strip())

    if not isinstance(data, dict):
        raise ModelFormatError(
            f"Top-level document must be a mapping in {path}, got {type(data).__name__}"
        )

    return data


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _str(value: Any) -> str:
    return "" if value is None else str(value)


def _bool(value: Any, where: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ModelFormatError(f"{where} must be a boolean, got {value!r}")


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    """Value of the first present key; accepts current and legacy spellings."""
    for key in keys:
        if key in data:
            return data[key]
    return None


def _require_mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ModelFormatError(f"{where} must be a mapping, got {type(value).__name__}")
    return value


def _require_list(value: Any, where: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ModelFormatError(f"{where} must be a list, got {type(value).__name__}")
    return value


def attribute_from_mapping(data: Mapping[str, Any]) -> Attribute:
    example = data.get("example")
    return Attribute(
        name=_str(data.get("name")),
        type=_str(data.get("type")),
        required=_bool(data.get("required"), f"attribute {data.get('name')!r} required"),
        description=_opt_str(data.get("description")),
        external_reference=_opt_str(_first(data, "externalReference", "siviReference")),
        example=None if example is None else str(example),
    )


def relationship_from_mapping(data: Mapping[str, Any]) -> Relationship:
    return Relationship(
        kind=_str(_first(data, "kind", "type")),
        target=_str(_first(data, "targetEntityId", "target")),
        cardinality=_str(data.get("cardinality")),
        description=_opt_str(data.get("description")),
    )


def entity_from_mapping(data: Mapping[str, Any], where: str = "entity") -> Entity:
    attributes = [
        attribute_from_mapping(_require_mapping(a, f"{where}.attributes[{j}]"))
        for j, a in enumerate(_require_list(data.get("attributes"), f"{where}.attributes"))
    ]
    relationships = [
        relationship_from_mapping(_require_mapping(r, f"{where}.relationships[{k}]"))
        for k, r in enumerate(
            _require_list(data.get("relationships"), f"{where}.relationships")
        )
    ]
    return Entity(
        id=_str(data.get("id")),
        name=_str(data.get("name")),
        kind=_str(_first(data, "kind", "type")),
        description=_opt_str(data.get("description")),
        attributes=attributes,
        relationships=relationships,
        external_reference=_opt_str(_first(data, "externalReference", "siviReference")),
        schema_version=_str(_first(data, "schemaVersion", "version") or SCHEMA_VERSION_DEFAULT),
    )


def model_from_mapping(data: Mapping[str, Any]) -> DomainModel:
    """Map structured data onto a DomainModel.

    Missing scalars become empty strings so that the validator, not the
    loader, reports them. Wrong container types raise ModelFormatError.
    """
    data = _require_mapping(data, "model")
    entities = [
        entity_from_mapping(_require_mapping(e, f"entities[{i}]"), f"entities[{i}]")
        for i, e in enumerate(_require_list(data.get("entities"), "entities"))
    ]
    meta = _require_mapping(data.get("metadata") or {}, "metadata")
    return DomainModel(
        name=_str(data.get("name")),
        version=_str(data.get("version", MODEL_VERSION_DEFAULT)),
        description=_opt_str(data.get("description")),
        namespace=_opt_str(data.get("namespace")),
        entities=entities,
        metadata=ModelMetadata(
            created=_str(meta.get("created")),
            updated=_str(meta.get("updated")),
            author=_opt_str(meta.get("author")),
            schema_version=_str(
                _first(meta, "schemaVersion", "siviVersion") or SCHEMA_VERSION_DEFAULT
            ),
        ),
    )


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def model_to_mapping(model: DomainModel) -> dict[str, Any]:
    """Lossless, JSON/YAML-safe encoding of a DomainModel."""
    return _drop_none(
        {
            "name": model.name,
            "version": model.version,
            "description": model.description,
            "namespace": model.namespace,
            "entities": [
                _drop_none(
                    {
                        "id": e.id,
                        "name": e.name,
                        "description": e.description,
                        "kind": e.kind,
                        "attributes": [
                            _drop_none(
                                {
                                    "name": a.name,
                                    "type": a.type,
                                    "required": a.required,
                                    "description": a.description,
                                    "externalReference": a.external_reference,
                                    "example": a.example,
                                }
                            )
                            for a in e.attributes
                        ],
                        "relationships": [
                            _drop_none(
                                {
                                    "kind": r.kind,
                                    "targetEntityId": r.target,
                                    "cardinality": r.cardinality,
                                    "description": r.description,
                                }
                            )
                            for r in e.relationships
                        ],
                        "externalReference": e.external_reference,
                        "schemaVersion": e.schema_version,
                    }
                )
                for e in model.entities
            ],
            "metadata": _drop_none(
                {
                    "created": model.metadata.created,
                    "updated": model.metadata.updated,
                    "author": model.metadata.author,
                    "schemaVersion": model.metadata.schema_version,
                }
            ),
        }
    )


def load_model(path: Path) -> DomainModel:
    """Load a domain model from a YAML or JSON file."""
    if not path.exists():
        raise FileNotFoundError(str(path))
    return model_from_mapping(_load_mapping(path))


def dumps_model(model: DomainModel, fmt: str = "json") -> str:
    data = model_to_mapping(model)
    if fmt == "json":
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    raise ValueError(f"Unknown model serialization format: {fmt!r}")


def dump_model(model: DomainModel, path: Path) -> Path:
    """Write `model` to `path`; `.yaml`/`.yml` selects YAML, anything else JSON."""
    fmt = "yaml" if path.suffix.lower() in (".yaml", ".yml") else "json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps_model(model, fmt), encoding="utf-8")
    logger.info("Wrote domain model %r to %s", model.name, path)
    return path


def import_model(
    data: Mapping[str, Any],
    *,
    author: str = AUTHOR_DEFAULT,
    schema_version: str = SCHEMA_VERSION_DEFAULT,
    clock: Optional[Clock] = None,
) -> DomainModel:
    """Build a model from external data with fresh metadata, then validate it.

    Raises ModelValidationError listing every violation.
    """
    model = model_from_mapping(data)
    now = iso_timestamp(clock)
    model.metadata = ModelMetadata(
        created=now, updated=now, author=author, schema_version=schema_version
    )
    validate_model(model)
    logger.info("Domain model imported successfully: %s", model.name)
    return model
