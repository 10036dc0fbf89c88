import pytest

from domain_model_gen.errors import ModelValidationError
from domain_model_gen.model import Attribute, DomainModel, Entity, Relationship
from domain_model_gen.validate import (
    ValidateConfig,
    check_model,
    validate_entity,
    validate_model,
    validate_model_issues,
)


def _entity(entity_id: str, kind: str = "Policy", **kwargs) -> Entity:
    return Entity(id=entity_id, name=entity_id.title(), kind=kind, **kwargs)


def _error_codes(model: DomainModel) -> list[str]:
    return [iss.code for iss in validate_model_issues(model) if iss.severity == "error"]


def test_policy_coverage_model_validates(policy_model):
    validate_model(policy_model)
    assert check_model(policy_model) == ([], [])


def test_removing_target_reports_exactly_one_dangling_reference(policy_model):
    policy_model.entities = [e for e in policy_model.entities if e.id != "coverage"]

    with pytest.raises(ModelValidationError) as excinfo:
        validate_model(policy_model)

    assert excinfo.value.errors == [
        "entity 'Policy' has relationship to non-existent entity 'coverage'"
    ]
    assert [iss.code for iss in excinfo.value.issues] == ["E_RELATIONSHIP_UNKNOWN_TARGET"]


def test_every_violated_rule_is_reported():
    model = DomainModel(
        name="Broken",
        entities=[
            Entity(id="a", name="", kind="Policy"),
            _entity("b", kind="Vehicle"),
            _entity("c", attributes=[Attribute(name="x", type="")]),
            _entity(
                "d",
                relationships=[
                    Relationship(kind="friendship", target="a", cardinality="1"),
                    Relationship(kind="association", target="", cardinality=""),
                ],
            ),
            _entity("a", kind="Coverage"),
            _entity("e", relationships=[Relationship(kind="association", target="ghost", cardinality="1")]),
        ],
    )

    codes = _error_codes(model)
    assert sorted(set(codes)) == sorted(
        [
            "E_ENTITY_MISSING_NAME",
            "E_ENTITY_INVALID_KIND",
            "E_ATTRIBUTE_INCOMPLETE",
            "E_RELATIONSHIP_INVALID_KIND",
            "E_RELATIONSHIP_INCOMPLETE",
            "E_ENTITY_DUPLICATE_ID",
            "E_RELATIONSHIP_UNKNOWN_TARGET",
        ]
    )

    with pytest.raises(ModelValidationError) as excinfo:
        validate_model(model)
    assert len(excinfo.value.errors) == len(codes)


def test_duplicate_id_reported_once_regardless_of_repeats():
    model = DomainModel(
        name="Dupes",
        entities=[_entity("a"), _entity("b"), _entity("a"), _entity("a")],
    )

    errors, _ = check_model(model)
    assert errors == ["duplicate entity id 'a' (3 occurrences)"]


def test_dangling_reference_names_source_and_target():
    model = DomainModel(
        name="Ghosts",
        entities=[
            _entity(
                "x",
                relationships=[Relationship(kind="association", target="ghost", cardinality="1")],
            )
        ],
    )

    errors, _ = check_model(model)
    assert errors == ["entity 'X' has relationship to non-existent entity 'ghost'"]


def test_relationship_missing_fields_are_listed_together():
    model = DomainModel(
        name="Partial",
        entities=[_entity("p", relationships=[Relationship(kind="", target="", cardinality="")])],
    )

    errors, _ = check_model(model)
    assert errors == [
        "entities[0] (P): relationship at index 0 is missing kind, targetEntityId, cardinality"
    ]


def test_zero_entities_is_valid_with_warning():
    model = DomainModel(name="Empty")

    validate_model(model)
    errors, warnings = check_model(model)
    assert errors == []
    assert warnings == ["domain model 'Empty' has no entities"]


def test_model_name_and_version_are_required():
    model = DomainModel(name="", version="")
    assert _error_codes(model) == ["E_MODEL_MISSING_NAME", "E_MODEL_MISSING_VERSION"]


def test_warnings_do_not_fail_validation():
    model = DomainModel(
        name="Loose",
        entities=[
            _entity(
                "policy-1",
                relationships=[
                    Relationship(kind="association", target="policy-1", cardinality="2..5")
                ],
            )
        ],
    )

    validate_model(model)
    codes = [iss.code for iss in validate_model_issues(model)]
    assert codes == ["W_ENTITY_ID_NOT_DIAGRAM_SAFE", "W_RELATIONSHIP_NONSTANDARD_CARDINALITY"]


def test_cardinality_whitespace_is_tolerated():
    model = DomainModel(
        name="Spaced",
        entities=[
            _entity("a", relationships=[Relationship(kind="association", target="a", cardinality=" 1 .. * ")])
        ],
    )
    assert validate_model_issues(model) == []


def test_escalate_turns_warning_into_error():
    model = DomainModel(name="Empty")
    cfg = ValidateConfig(escalate=frozenset({"W_MODEL_EMPTY"}))

    with pytest.raises(ModelValidationError, match="has no entities"):
        validate_model(model, cfg)


def test_ignore_drops_issue():
    model = DomainModel(name="Dupes", entities=[_entity("a"), _entity("a")])
    cfg = ValidateConfig(ignore=frozenset({"E_ENTITY_DUPLICATE_ID"}))

    validate_model(model, cfg)


def test_validate_entity_checks_structure_only():
    # Unknown targets are a model-level concern.
    validate_entity(
        _entity("a", relationships=[Relationship(kind="association", target="ghost", cardinality="1")])
    )

    with pytest.raises(ModelValidationError) as excinfo:
        validate_entity(Entity(id="", name="", kind=""))
    assert [iss.code for iss in excinfo.value.issues] == [
        "E_ENTITY_MISSING_ID",
        "E_ENTITY_MISSING_NAME",
        "E_ENTITY_MISSING_KIND",
    ]
