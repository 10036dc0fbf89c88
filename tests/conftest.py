from datetime import datetime, timezone
from pathlib import Path

import pytest

from domain_model_gen.model import Attribute, DomainModel, Entity, Relationship

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"

FROZEN_AT = datetime(2024, 3, 1, 12, 30, 45, 123000, tzinfo=timezone.utc)
FROZEN_STAMP = "2024-03-01T12:30:45.123Z"


@pytest.fixture
def frozen_clock():
    return lambda: FROZEN_AT


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


def make_policy_coverage_model() -> DomainModel:
    """Two-entity model: policy aggregates 1..* coverage."""
    return DomainModel(
        name="M",
        entities=[
            Entity(
                id="policy",
                name="Policy",
                kind="Policy",
                attributes=[Attribute(name="contractNumber", type="string", required=True)],
                relationships=[
                    Relationship(kind="aggregation", target="coverage", cardinality="1..*")
                ],
            ),
            Entity(id="coverage", name="Coverage", kind="Coverage"),
        ],
    )


@pytest.fixture
def policy_model() -> DomainModel:
    return make_policy_coverage_model()


@pytest.fixture
def frozen_stamp() -> str:
    return FROZEN_STAMP
