"""Typed domain model: entities, attributes, relationships and the model itself.

Entity and relationship kinds are kept as plain strings on the records so that
malformed input stays representable; the closed enums below are the single
source of truth for what a *valid* kind is and key every per-kind table.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from .constants import MODEL_VERSION_DEFAULT, SCHEMA_VERSION_DEFAULT

Clock = Callable[[], datetime]


class EntityKind(Enum):
    POLICY = "Policy"
    COVERAGE = "Coverage"
    PARTY = "Party"
    CLAIM = "Claim"
    PREMIUM = "Premium"
    OBJECT = "Object"
    CLAUSE = "Clause"

    @classmethod
    def parse(cls, value: object) -> Optional["EntityKind"]:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(k.value for k in cls)


class RelationshipKind(Enum):
    ASSOCIATION = "association"
    AGGREGATION = "aggregation"
    COMPOSITION = "composition"
    INHERITANCE = "inheritance"

    @classmethod
    def parse(cls, value: object) -> Optional["RelationshipKind"]:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(k.value for k in cls)


@dataclass
class Attribute:
    name: str
    type: str
    required: bool = False
    description: Optional[str] = None
    external_reference: Optional[str] = None
    example: Optional[str] = None


@dataclass
class Relationship:
    """Directed edge owned by its source entity; `target` is an entity id."""

    kind: str
    target: str
    cardinality: str
    description: Optional[str] = None


@dataclass
class Entity:
    id: str
    name: str
    kind: str
    description: Optional[str] = None
    attributes: list[Attribute] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    external_reference: Optional[str] = None
    schema_version: str = SCHEMA_VERSION_DEFAULT


@dataclass
class ModelMetadata:
    created: str = ""
    updated: str = ""
    author: Optional[str] = None
    schema_version: str = SCHEMA_VERSION_DEFAULT


@dataclass
class DomainModel:
    name: str
    entities: list[Entity] = field(default_factory=list)
    version: str = MODEL_VERSION_DEFAULT
    description: Optional[str] = None
    namespace: Optional[str] = None
    metadata: ModelMetadata = field(default_factory=ModelMetadata)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(clock: Optional[Clock] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a `Z` suffix."""
    now = (clock or utc_now)()
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
