from __future__ import annotations

import re
from dataclasses import dataclass

from .model import DomainModel, Entity, Relationship


@dataclass(frozen=True)
class ResolvedRelationship:
    source: Entity
    relationship: Relationship
    target: Entity


def build_entity_index(model: DomainModel) -> dict[str, Entity]:
    """Index entities by id. On duplicate ids the first occurrence wins."""
    index: dict[str, Entity] = {}
    for entity in model.entities:
        if entity.id and entity.id not in index:
            index[entity.id] = entity
    return index


def outgoing_relationships(model: DomainModel, entity_id: str) -> list[ResolvedRelationship]:
    """Relationships owned by `entity_id`, with their targets resolved."""
    index = build_entity_index(model)
    entity = index.get(entity_id)
    if entity is None:
        raise KeyError(f"Entity with id {entity_id!r} not found")

    resolved: list[ResolvedRelationship] = []
    for rel in entity.relationships:
        target = index.get(rel.target)
        if target is None:
            raise KeyError(f"Target entity {rel.target!r} not found")
        resolved.append(ResolvedRelationship(entity, rel, target))
    return resolved


def incoming_relationships(model: DomainModel, entity_id: str) -> list[ResolvedRelationship]:
    """Relationships pointing at `entity_id`, found by scanning every entity."""
    index = build_entity_index(model)
    target = index.get(entity_id)
    if target is None:
        raise KeyError(f"Entity with id {entity_id!r} not found")

    return [
        ResolvedRelationship(source, rel, target)
        for source in model.entities
        for rel in source.relationships
        if rel.target == entity_id
    ]


def slugify(name: str) -> str:
    """File-name slug for a model name: lowercase, whitespace runs become '-'."""
    slug = re.sub(r"\s+", "-", name.strip().lower())
    # Slugs are used as file and directory names.
    return re.sub(r"[\\/]|\.\.", "-", slug)
