# domain_model_gen/validate.py
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Literal, Optional, Tuple

from .constants import CANONICAL_CARDINALITIES
from .errors import ModelValidationError
from .logging_config import get_logger
from .mermaid_fmt import MERMAID_ID_RE
from .model import DomainModel, Entity, EntityKind, RelationshipKind

Severity = Literal["error", "warning"]

logger = get_logger(__name__)


@dataclass(frozen=True)
class ValidationIssue:
    """Structured validation issue for callers that want more than strings."""

    severity: Severity
    code: str
    message: str
    path: str = ""
    hint: Optional[str] = None


@dataclass(frozen=True)
class ValidateConfig:
    """Validation configuration.

    `ignore` drops issues by code; `escalate` turns warnings into errors.
    """

    ignore: frozenset[str] = field(default_factory=frozenset)
    escalate: frozenset[str] = field(default_factory=frozenset)


class _IssueCollector:
    def __init__(self, cfg: ValidateConfig):
        self.cfg = cfg
        self.issues: list[ValidationIssue] = []

    def emit(
        self,
        severity: Severity,
        code: str,
        message: str,
        path: str = "",
        hint: Optional[str] = None,
    ) -> None:
        if code in self.cfg.ignore:
            return
        final_severity: Severity = (
            "error" if (severity == "warning" and code in self.cfg.escalate) else severity
        )
        self.issues.append(
            ValidationIssue(
                severity=final_severity,
                code=code,
                message=message,
                path=path,
                hint=hint,
            )
        )


def _entity_tag(index: int, entity: Entity) -> str:
    return f"entities[{index}] ({entity.name or entity.id or '<unnamed>'})"


def _check_entity(out: _IssueCollector, entity: Entity, index: int) -> None:
    """Per-entity structural checks: required fields, kinds, attributes, relationships."""
    tag = _entity_tag(index, entity)
    base = f"/entities/{index}"

    for field_name in ("id", "name", "kind"):
        if not getattr(entity, field_name):
            out.emit(
                "error",
                f"E_ENTITY_MISSING_{field_name.upper()}",
                f"{tag}: entity must have a non-empty `{field_name}`",
                path=f"{base}/{field_name}",
            )

    if entity.kind and EntityKind.parse(entity.kind) is None:
        out.emit(
            "error",
            "E_ENTITY_INVALID_KIND",
            f"{tag}: invalid entity kind {entity.kind!r}; "
            f"must be one of: {', '.join(EntityKind.values())}",
            path=f"{base}/kind",
        )

    if entity.id and not MERMAID_ID_RE.match(entity.id):
        out.emit(
            "warning",
            "W_ENTITY_ID_NOT_DIAGRAM_SAFE",
            f"{tag}: entity id {entity.id!r} is not diagram-safe",
            path=f"{base}/id",
            hint="Use [A-Za-z0-9_] and do not start with a digit",
        )

    for j, attr in enumerate(entity.attributes):
        if not attr.name or not attr.type:
            out.emit(
                "error",
                "E_ATTRIBUTE_INCOMPLETE",
                f"{tag}: attribute at index {j} must have name and type",
                path=f"{base}/attributes/{j}",
            )

    for k, rel in enumerate(entity.relationships):
        missing = [
            name
            for name, value in (
                ("kind", rel.kind),
                ("targetEntityId", rel.target),
                ("cardinality", rel.cardinality),
            )
            if not value
        ]
        if missing:
            out.emit(
                "error",
                "E_RELATIONSHIP_INCOMPLETE",
                f"{tag}: relationship at index {k} is missing {', '.join(missing)}",
                path=f"{base}/relationships/{k}",
            )

        if rel.kind and RelationshipKind.parse(rel.kind) is None:
            out.emit(
                "error",
                "E_RELATIONSHIP_INVALID_KIND",
                f"{tag}: invalid relationship kind {rel.kind!r}; "
                f"must be one of: {', '.join(RelationshipKind.values())}",
                path=f"{base}/relationships/{k}/kind",
            )

        if rel.cardinality and "".join(rel.cardinality.split()) not in CANONICAL_CARDINALITIES:
            out.emit(
                "warning",
                "W_RELATIONSHIP_NONSTANDARD_CARDINALITY",
                f"{tag}: relationship at index {k} uses non-standard cardinality "
                f"{rel.cardinality!r}; it will be rendered verbatim",
                path=f"{base}/relationships/{k}/cardinality",
            )


def validate_model_issues(
    model: DomainModel, cfg: Optional[ValidateConfig] = None
) -> list[ValidationIssue]:
    """Return every validation issue found in one pass over the model.

    This is the canonical validator. Nothing short-circuits: a model violating
    several rules yields one issue per violation.
    """
    out = _IssueCollector(cfg or ValidateConfig())

    if not model.name:
        out.emit("error", "E_MODEL_MISSING_NAME", "domain model must have a name", path="/name")
    if not model.version:
        out.emit(
            "error", "E_MODEL_MISSING_VERSION", "domain model must have a version", path="/version"
        )

    if not model.entities:
        out.emit(
            "warning",
            "W_MODEL_EMPTY",
            f"domain model {model.name!r} has no entities",
            path="/entities",
        )

    # Pass 1: per-entity structure.
    for i, entity in enumerate(model.entities):
        _check_entity(out, entity, i)

    # Pass 2: id uniqueness. Each duplicated id is reported once.
    id_counts = Counter(e.id for e in model.entities if e.id)
    for entity_id, count in id_counts.items():
        if count > 1:
            out.emit(
                "error",
                "E_ENTITY_DUPLICATE_ID",
                f"duplicate entity id {entity_id!r} ({count} occurrences)",
                path="/entities",
            )

    # Pass 3: referential integrity.
    known_ids = set(id_counts)
    for i, entity in enumerate(model.entities):
        for k, rel in enumerate(entity.relationships):
            if rel.target and rel.target not in known_ids:
                out.emit(
                    "error",
                    "E_RELATIONSHIP_UNKNOWN_TARGET",
                    f"entity {entity.name or entity.id!r} has relationship to "
                    f"non-existent entity {rel.target!r}",
                    path=f"/entities/{i}/relationships/{k}/targetEntityId",
                )

    return out.issues


def check_model(model: DomainModel) -> Tuple[list[str], list[str]]:
    """Return `(errors, warnings)` as message lists."""
    issues = validate_model_issues(model)
    errors = [iss.message for iss in issues if iss.severity == "error"]
    warnings = [iss.message for iss in issues if iss.severity == "warning"]
    return errors, warnings


def validate_model(model: DomainModel, cfg: Optional[ValidateConfig] = None) -> None:
    """Raise ModelValidationError listing every violation, or return None."""
    issues = validate_model_issues(model, cfg)
    if any(iss.severity == "error" for iss in issues):
        raise ModelValidationError("Domain model", issues)
    logger.info("Domain model %r validated successfully", model.name)


def validate_entity(entity: Entity, index: int = 0) -> None:
    """Structural checks for a single entity (no uniqueness or reference checks)."""
    out = _IssueCollector(ValidateConfig())
    _check_entity(out, entity, index)
    if any(iss.severity == "error" for iss in out.issues):
        raise ModelValidationError("Entity", out.issues)
