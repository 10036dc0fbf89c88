from __future__ import annotations

from typing import Optional

from ..constants import CANONICAL_CARDINALITIES, FALLBACK_METHODS
from ..errors import RenderError
from ..logging_config import get_logger
from ..model import Clock, DomainModel, Entity, EntityKind, RelationshipKind, iso_timestamp
from .grammars import ArrowStyle, ClassGrammar, KindStyle, get_class_grammar
from .render_config import RenderConfig

logger = get_logger(__name__)

REQUIRED_MARKER = "+"
OPTIONAL_MARKER = "-"

ARROW_STYLES: dict[RelationshipKind, ArrowStyle] = {
    RelationshipKind.ASSOCIATION: ArrowStyle.DIRECTED,
    RelationshipKind.AGGREGATION: ArrowStyle.HOLLOW_DIAMOND,
    RelationshipKind.COMPOSITION: ArrowStyle.FILLED_DIAMOND,
    RelationshipKind.INHERITANCE: ArrowStyle.HOLLOW_TRIANGLE,
}

# Decorative method scaffolding; not derived from the model.
KIND_METHODS: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.POLICY: ("validate", "calculatePremium", "renew", "cancel"),
    EntityKind.COVERAGE: ("calculatePremium", "checkEligibility", "applyDeductible"),
    EntityKind.PARTY: ("updateContact", "validateInfo", "getRole"),
    EntityKind.CLAIM: ("process", "approve", "reject", "calculatePayout"),
    EntityKind.PREMIUM: ("calculate", "applyDiscount", "processPayment"),
    EntityKind.OBJECT: ("appraise", "inspect", "updateValue"),
    EntityKind.CLAUSE: ("apply", "validate", "interpret"),
}

KIND_STYLES: dict[EntityKind, KindStyle] = {
    EntityKind.POLICY: KindStyle("policyClass", "#e1f5fe", "#01579b"),
    EntityKind.COVERAGE: KindStyle("coverageClass", "#f3e5f5", "#4a148c"),
    EntityKind.PARTY: KindStyle("partyClass", "#e8f5e8", "#1b5e20"),
    EntityKind.CLAIM: KindStyle("claimClass", "#fff3e0", "#e65100"),
    EntityKind.PREMIUM: KindStyle("premiumClass", "#fffde7", "#f57f17"),
    EntityKind.OBJECT: KindStyle("objectClass", "#eceff1", "#37474f"),
    EntityKind.CLAUSE: KindStyle("clauseClass", "#fce4ec", "#880e4f"),
}


def visibility_marker(required: bool) -> str:
    return REQUIRED_MARKER if required else OPTIONAL_MARKER


def canonical_cardinality(raw: str) -> str:
    """Canonical spelling for the common forms; anything else verbatim."""
    return CANONICAL_CARDINALITIES.get("".join(str(raw).split()), raw)


def methods_for(kind: Optional[EntityKind]) -> tuple[str, ...]:
    if kind is None:
        return FALLBACK_METHODS
    return KIND_METHODS[kind]


def _require(value: object, what: str) -> str:
    if not isinstance(value, str) or not value:
        raise RenderError(f"cannot render diagram: {what} is missing")
    return value


def _class_lines(grammar: ClassGrammar, entity: Entity, index: int, cfg: RenderConfig) -> list[str]:
    class_id = _require(entity.id, f"entities[{index}].id")
    label = _require(entity.name, f"entities[{index}].name")
    kind = EntityKind.parse(entity.kind)

    lines = grammar.class_open(class_id, label, kind)
    if cfg.show_attributes:
        for attr in entity.attributes:
            lines.append(
                grammar.attribute(
                    visibility_marker(attr.required), attr.name, attr.type, attr.description
                )
            )
    if cfg.show_methods:
        separator = grammar.method_separator()
        if separator:
            lines.append(separator)
        lines.extend(grammar.method(name) for name in methods_for(kind))
    lines.append(grammar.class_close())
    return lines


def _relationship_lines(grammar: ClassGrammar, entity: Entity) -> list[str]:
    lines: list[str] = []
    for rel in entity.relationships:
        # Unknown kinds degrade to a plain association arrow.
        kind = RelationshipKind.parse(rel.kind) or RelationshipKind.ASSOCIATION
        cardinality: Optional[str] = None
        if kind is not RelationshipKind.INHERITANCE and rel.cardinality:
            cardinality = canonical_cardinality(rel.cardinality)
        lines.append(
            grammar.relation(
                entity.id,
                grammar.arrow(ARROW_STYLES[kind]),
                rel.target,
                cardinality,
                rel.description,
            )
        )
    return lines


def render_class_diagram(
    model: DomainModel,
    cfg: RenderConfig,
    *,
    clock: Optional[Clock] = None,
) -> str:
    """Render `model` as a class diagram in the grammar selected by `cfg`.

    Entities and relationships are emitted in list order, so the same model
    and config always produce the same text. The metadata header embeds a
    generation timestamp taken from `clock`; pass a fixed clock (or disable
    the header) when byte-identical output matters.

    The model is not re-validated. A relationship whose target does not
    exist is still drawn and simply points at a class that is never
    declared. Only a missing model name, entity id or entity name raises
    RenderError.
    """
    grammar = get_class_grammar(cfg.grammar)
    model_name = _require(model.name, "model name")

    lines: list[str] = list(grammar.open(cfg))
    lines.append("")

    if cfg.include_metadata_header:
        lines.append(grammar.comment(f"Domain Model: {model_name}"))
        lines.append(grammar.comment(f"Version: {model.version}"))
        lines.append(grammar.comment(f"Generated: {iso_timestamp(clock)}"))
        lines.append(grammar.comment(f"Based on SIVI AFD {model.metadata.schema_version}"))
        lines.append("")

    for i, entity in enumerate(model.entities):
        lines.extend(_class_lines(grammar, entity, i, cfg))
        lines.append("")

    if cfg.show_relationships:
        rel_lines: list[str] = []
        for entity in model.entities:
            rel_lines.extend(_relationship_lines(grammar, entity))
        if rel_lines:
            lines.extend(rel_lines)
            lines.append("")

    # Entities of unknown kind get no style.
    styled_entities: list[tuple[str, KindStyle]] = []
    for entity in model.entities:
        kind = EntityKind.parse(entity.kind)
        if kind is not None:
            styled_entities.append((entity.id, KIND_STYLES[kind]))
    lines.extend(grammar.style_block(list(KIND_STYLES.items()), styled_entities))
    lines.extend(grammar.close())

    logger.debug(
        "Rendered %s class diagram for %r (%d entities)",
        grammar.fmt.value,
        model_name,
        len(model.entities),
    )
    return "\n".join(lines) + "\n"
