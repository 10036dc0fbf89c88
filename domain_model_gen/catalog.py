"""Built-in SIVI AFD 2.0 entity templates.

The templates are built once at import time and are never handed out
directly: every accessor returns deep copies, so callers may mutate what
they receive without affecting other callers.
"""
from __future__ import annotations

import copy
import dataclasses
from typing import Iterable, Optional, Union

from .constants import AUTHOR_DEFAULT, NAMESPACE_DEFAULT, SCHEMA_VERSION_DEFAULT
from .errors import ModelValidationError
from .logging_config import get_logger
from .model import (
    Attribute,
    Clock,
    DomainModel,
    Entity,
    EntityKind,
    ModelMetadata,
    Relationship,
    iso_timestamp,
)
from .validate import ValidationIssue, validate_entity, validate_model

logger = get_logger(__name__)


def _attr(name: str, type_: str, required: bool, description: str, ref: str) -> Attribute:
    return Attribute(
        name=name,
        type=type_,
        required=required,
        description=description,
        external_reference=f"AFD.{ref}",
    )


def _rel(kind: str, target: str, cardinality: str, description: str) -> Relationship:
    return Relationship(kind=kind, target=target, cardinality=cardinality, description=description)


def _build_templates() -> dict[EntityKind, Entity]:
    templates = [
        Entity(
            id="policy",
            name="Policy",
            kind=EntityKind.POLICY.value,
            description="Insurance policy/contract entity",
            attributes=[
                _attr("contractNumber", "string", True, "Unique policy contract number", "Policy.ContractNumber"),
                _attr("effectiveDate", "Date", True, "Policy effective date", "Policy.EffectiveDate"),
                _attr("expirationDate", "Date", True, "Policy expiration date", "Policy.ExpirationDate"),
                _attr("status", "string", True, "Policy status", "Policy.Status"),
                _attr("policyType", "string", True, "Type of insurance policy", "Policy.Type"),
                _attr("premium", "number", False, "Policy premium amount", "Policy.Premium"),
            ],
            relationships=[
                _rel("aggregation", "coverage", "1..*", "Policy includes one or more coverages"),
                _rel("association", "party", "1..*", "Policy involves multiple parties"),
                _rel("association", "premium", "1", "Policy has premium information"),
            ],
            external_reference="AFD.Policy",
        ),
        Entity(
            id="coverage",
            name="Coverage",
            kind=EntityKind.COVERAGE.value,
            description="Insurance coverage details",
            attributes=[
                _attr("coverageCode", "string", True, "Coverage type code", "Coverage.Code"),
                _attr("description", "string", True, "Coverage description", "Coverage.Description"),
                _attr("limit", "number", False, "Coverage limit amount", "Coverage.Limit"),
                _attr("deductible", "number", False, "Coverage deductible amount", "Coverage.Deductible"),
                _attr("premium", "number", False, "Coverage premium", "Coverage.Premium"),
            ],
            relationships=[
                _rel("association", "object", "0..*", "Coverage may apply to insured objects"),
                _rel("association", "clause", "0..*", "Coverage may have specific clauses"),
            ],
            external_reference="AFD.Coverage",
        ),
        Entity(
            id="party",
            name="Party",
            kind=EntityKind.PARTY.value,
            description="Parties involved in insurance policy",
            attributes=[
                _attr("partyId", "string", True, "Unique party identifier", "Party.Id"),
                _attr("role", "string", True, "Party role (Insured, Insurer, Broker, etc.)", "Party.Role"),
                _attr("name", "string", True, "Party name", "Party.Name"),
                _attr("address", "string", False, "Party address", "Party.Address"),
                _attr("contactInfo", "string", False, "Party contact information", "Party.Contact"),
            ],
            external_reference="AFD.Party",
        ),
        Entity(
            id="claim",
            name="Claim",
            kind=EntityKind.CLAIM.value,
            description="Insurance claim entity",
            attributes=[
                _attr("claimNumber", "string", True, "Unique claim number", "Claim.Number"),
                _attr("claimDate", "Date", True, "Claim occurrence date", "Claim.Date"),
                _attr("reportDate", "Date", True, "Claim report date", "Claim.ReportDate"),
                _attr("status", "string", True, "Claim status", "Claim.Status"),
                _attr("amount", "number", False, "Claim amount", "Claim.Amount"),
                _attr("description", "string", False, "Claim description", "Claim.Description"),
            ],
            relationships=[
                _rel("association", "policy", "1", "Claim is associated with a policy"),
                _rel("association", "coverage", "1..*", "Claim affects one or more coverages"),
            ],
            external_reference="AFD.Claim",
        ),
        Entity(
            id="premium",
            name="Premium",
            kind=EntityKind.PREMIUM.value,
            description="Insurance premium information",
            attributes=[
                _attr("amount", "number", True, "Premium amount", "Premium.Amount"),
                _attr("currency", "string", True, "Premium currency", "Premium.Currency"),
                _attr("paymentFrequency", "string", True, "Payment frequency", "Premium.Frequency"),
                _attr("dueDate", "Date", False, "Premium due date", "Premium.DueDate"),
            ],
            external_reference="AFD.Premium",
        ),
        Entity(
            id="object",
            name="Object",
            kind=EntityKind.OBJECT.value,
            description="Insured object/item",
            attributes=[
                _attr("objectId", "string", True, "Unique object identifier", "Object.Id"),
                _attr("type", "string", True, "Object type", "Object.Type"),
                _attr("description", "string", False, "Object description", "Object.Description"),
                _attr("value", "number", False, "Object value", "Object.Value"),
                _attr("location", "string", False, "Object location", "Object.Location"),
            ],
            external_reference="AFD.Object",
        ),
        Entity(
            id="clause",
            name="Clause",
            kind=EntityKind.CLAUSE.value,
            description="Policy clause or condition",
            attributes=[
                _attr("clauseId", "string", True, "Unique clause identifier", "Clause.Id"),
                _attr("type", "string", True, "Clause type", "Clause.Type"),
                _attr("description", "string", True, "Clause description", "Clause.Description"),
                _attr("text", "string", False, "Full clause text", "Clause.Text"),
            ],
            external_reference="AFD.Clause",
        ),
    ]
    return {EntityKind(t.kind): t for t in templates}


# Canonical copies; never returned by reference.
_TEMPLATES: dict[EntityKind, Entity] = _build_templates()


def list_builtins() -> list[Entity]:
    """Return fresh copies of all built-in templates in taxonomy order."""
    return [copy.deepcopy(_TEMPLATES[kind]) for kind in EntityKind]


def lookup(kind: Union[EntityKind, str]) -> Optional[Entity]:
    """Return a copy of the template for `kind`, or None for an unknown kind."""
    parsed = EntityKind.parse(kind)
    if parsed is None:
        return None
    return copy.deepcopy(_TEMPLATES[parsed])


def bootstrap_model(
    name: str,
    description: Optional[str] = None,
    *,
    namespace: str = NAMESPACE_DEFAULT,
    author: str = AUTHOR_DEFAULT,
    schema_version: str = SCHEMA_VERSION_DEFAULT,
    clock: Optional[Clock] = None,
) -> DomainModel:
    """Create a new domain model seeded with every built-in template."""
    now = iso_timestamp(clock)
    model = DomainModel(
        name=name,
        description=description,
        namespace=namespace,
        entities=list_builtins(),
        metadata=ModelMetadata(
            created=now, updated=now, author=author, schema_version=schema_version
        ),
    )
    logger.info("Bootstrapped domain model %r with %d entities", name, len(model.entities))
    return model


def extend_model(
    model: DomainModel,
    custom_entities: Iterable[Entity],
    *,
    clock: Optional[Clock] = None,
) -> DomainModel:
    """Return a new model with `custom_entities` appended.

    Each custom entity is validated on its own first; ids that collide with
    entities already in the model are rejected. The combined model is then
    validated as a whole. `model` itself is left untouched.
    """
    custom = [copy.deepcopy(e) for e in custom_entities]
    for entity in custom:
        validate_entity(entity)

    existing = {e.id for e in model.entities}
    conflicts = [e.id for e in custom if e.id in existing]
    if conflicts:
        raise ModelValidationError(
            "Model extension",
            [
                ValidationIssue(
                    severity="error",
                    code="E_ENTITY_ID_CONFLICT",
                    message=f"entity id {entity_id!r} already exists in model {model.name!r}",
                )
                for entity_id in conflicts
            ],
        )

    extended = copy.deepcopy(model)
    extended.entities.extend(custom)
    extended.metadata = dataclasses.replace(extended.metadata, updated=iso_timestamp(clock))

    validate_model(extended)
    return extended
