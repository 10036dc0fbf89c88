import dataclasses
import re

import pytest

from domain_model_gen.catalog import bootstrap_model
from domain_model_gen.diagrams.class_diagram import canonical_cardinality, render_class_diagram
from domain_model_gen.diagrams.registry import DiagramType, render_diagram
from domain_model_gen.diagrams.render_config import DiagramFormat, Direction, RenderConfig
from domain_model_gen.errors import RenderError, UnknownGrammarError
from domain_model_gen.model import Attribute, DomainModel, Entity, Relationship

MERMAID = RenderConfig(grammar=DiagramFormat.MERMAID)
PLANTUML = RenderConfig(grammar=DiagramFormat.PLANTUML)

ARROW_KINDS = {
    "-->": "association",
    "o--": "aggregation",
    "*--": "composition",
    "--|>": "inheritance",
}
RELATION_RE = re.compile(r'^\s*(\w+) (-->|o--|\*--|--\|>) (?:"[^"]*" )?(\w+)')

MERMAID_CLASS_RE = re.compile(r'^\s*class (\w+)\["([^"]*)"\] \{$')
PLANTUML_CLASS_RE = re.compile(r'^class "([^"]*)" as (\w+)')
MERMAID_ATTR_RE = re.compile(r"^ {8}([+-])(\w+): ([^\s/]+)")
PLANTUML_ATTR_RE = re.compile(r"^  ([+-]) (\w+): ([^\s/]+)")


def _mermaid_entities(text: str) -> set[tuple[str, str]]:
    found = set()
    for line in text.splitlines():
        m = MERMAID_CLASS_RE.match(line)
        if m:
            found.add((m.group(1), m.group(2)))
    return found


def _plantuml_entities(text: str) -> set[tuple[str, str]]:
    found = set()
    for line in text.splitlines():
        m = PLANTUML_CLASS_RE.match(line)
        if m:
            found.add((m.group(2), m.group(1)))
    return found


def _attribute_rows(text: str, class_re, id_group: int, attr_re) -> set[tuple[str, str, str, str]]:
    rows = set()
    current = None
    for line in text.splitlines():
        m = class_re.match(line)
        if m:
            current = m.group(id_group)
            continue
        m = attr_re.match(line)
        if m and current is not None:
            rows.add((current, m.group(1), m.group(2), m.group(3)))
    return rows


def _relation_triples(text: str) -> set[tuple[str, str, str]]:
    triples = set()
    for line in text.splitlines():
        m = RELATION_RE.match(line)
        if m:
            triples.add((m.group(1), m.group(3), ARROW_KINDS[m.group(2)]))
    return triples


def test_policy_class_block_in_mermaid(policy_model):
    text = render_class_diagram(
        policy_model, dataclasses.replace(MERMAID, include_metadata_header=False)
    )
    lines = text.splitlines()

    start = lines.index('    class policy["Policy"] {')
    end = lines.index("    }", start)
    body = lines[start + 1 : end]
    assert body == ["        <<Policy>>", "        +contractNumber: string"]
    assert '    policy o-- "1..*" coverage' in lines
    assert text.startswith("classDiagram\n")


def test_policy_class_block_in_plantuml(policy_model):
    text = render_class_diagram(
        policy_model, dataclasses.replace(PLANTUML, include_metadata_header=False)
    )
    lines = text.splitlines()

    assert lines[:2] == ["@startuml", "!theme plain"]
    start = lines.index('class "Policy" as policy <<Policy>> {')
    assert lines[start + 1] == "  + contractNumber: string"
    assert lines[start + 2] == "}"
    assert 'policy o-- "1..*" coverage' in lines
    assert lines[-1] == "@enduml"


@pytest.mark.parametrize("grammar", list(DiagramFormat))
def test_rendering_is_deterministic_without_header(grammar):
    model = bootstrap_model("Motor")
    cfg = RenderConfig(grammar=grammar, include_metadata_header=False, show_methods=True)

    assert render_class_diagram(model, cfg) == render_class_diagram(model, cfg)


@pytest.mark.parametrize("grammar", list(DiagramFormat))
def test_rendering_is_deterministic_with_frozen_clock(grammar, frozen_clock, frozen_stamp):
    model = bootstrap_model("Motor", clock=frozen_clock)
    cfg = RenderConfig(grammar=grammar)

    first = render_class_diagram(model, cfg, clock=frozen_clock)
    second = render_class_diagram(model, cfg, clock=frozen_clock)
    assert first == second
    assert f"Generated: {frozen_stamp}" in first


def test_metadata_header_lines(policy_model, frozen_clock, frozen_stamp):
    mermaid = render_class_diagram(policy_model, MERMAID, clock=frozen_clock).splitlines()
    assert mermaid[2:6] == [
        "    %% Domain Model: M",
        "    %% Version: 1.0.0",
        f"    %% Generated: {frozen_stamp}",
        "    %% Based on SIVI AFD 2.0",
    ]

    plantuml = render_class_diagram(policy_model, PLANTUML, clock=frozen_clock).splitlines()
    assert "' Domain Model: M" in plantuml
    assert "' Based on SIVI AFD 2.0" in plantuml


def test_grammars_agree_on_entities_and_relationships():
    model = bootstrap_model("Motor")
    mermaid = render_class_diagram(model, MERMAID)
    plantuml = render_class_diagram(model, PLANTUML)

    entities = _mermaid_entities(mermaid)
    assert entities == _plantuml_entities(plantuml)
    assert {name for _, name in entities} == {e.name for e in model.entities}

    triples = _relation_triples(mermaid)
    assert triples == _relation_triples(plantuml)
    assert ("policy", "coverage", "aggregation") in triples
    assert len(triples) == sum(len(e.relationships) for e in model.entities)

    attributes = _attribute_rows(mermaid, MERMAID_CLASS_RE, 1, MERMAID_ATTR_RE)
    assert attributes == _attribute_rows(plantuml, PLANTUML_CLASS_RE, 2, PLANTUML_ATTR_RE)
    assert attributes == {
        (e.id, "+" if a.required else "-", a.name, a.type)
        for e in model.entities
        for a in e.attributes
    }
    assert ("policy", "+", "contractNumber", "string") in attributes
    assert ("policy", "-", "premium", "number") in attributes


def test_dangling_target_renders_leniently(policy_model):
    policy_model.entities.pop()  # drop coverage

    for cfg in (MERMAID, PLANTUML):
        text = render_class_diagram(policy_model, cfg)
        assert ("policy", "coverage", "aggregation") in _relation_triples(text)
        assert "coverage" not in {cid for cid, _ in _mermaid_entities(text) | _plantuml_entities(text)}


@pytest.mark.parametrize(
    "model",
    [
        DomainModel(name="", entities=[]),
        DomainModel(name="M", entities=[Entity(id="", name="X", kind="Policy")]),
        DomainModel(name="M", entities=[Entity(id="x", name="", kind="Policy")]),
    ],
)
def test_missing_required_scalars_raise_render_error(model):
    with pytest.raises(RenderError):
        render_class_diagram(model, MERMAID)


def test_relationship_arrows_and_inheritance_without_cardinality():
    model = DomainModel(
        name="Arrows",
        entities=[
            Entity(
                id="a",
                name="A",
                kind="Policy",
                relationships=[
                    Relationship(kind="association", target="b", cardinality="0..1"),
                    Relationship(kind="composition", target="b", cardinality="*", description="owns"),
                    Relationship(kind="inheritance", target="b", cardinality="1"),
                    Relationship(kind="unknown", target="b", cardinality="1"),
                ],
            ),
            Entity(id="b", name="B", kind="Policy"),
        ],
    )

    mermaid = render_class_diagram(model, MERMAID).splitlines()
    assert '    a --> "0..1" b' in mermaid
    assert '    a *-- "*" b : owns' in mermaid
    assert "    a --|> b" in mermaid
    assert '    a --> "1" b' in mermaid

    plantuml = render_class_diagram(model, PLANTUML).splitlines()
    assert 'a *-- "*" b : owns' in plantuml
    assert "a --|> b" in plantuml


def test_cardinality_canonicalisation():
    assert canonical_cardinality(" 1 .. * ") == "1..*"
    assert canonical_cardinality("0..1") == "0..1"
    assert canonical_cardinality("2..5") == "2..5"


def test_optional_attributes_and_descriptions():
    model = DomainModel(
        name="Attrs",
        entities=[
            Entity(
                id="premium",
                name="Premium",
                kind="Premium",
                attributes=[
                    Attribute(name="amount", type="number", required=True, description="Gross {EUR}"),
                    Attribute(name="currency", type="string"),
                ],
            )
        ],
    )

    mermaid = render_class_diagram(model, MERMAID).splitlines()
    assert "        +amount: number // Gross (EUR)" in mermaid
    assert "        -currency: string" in mermaid

    plantuml = render_class_diagram(model, PLANTUML).splitlines()
    assert "  + amount: number // Gross {EUR}" in plantuml
    assert "  - currency: string" in plantuml


def test_toggles_hide_sections(policy_model):
    cfg = RenderConfig(show_attributes=False, show_relationships=False, include_metadata_header=False)
    text = render_class_diagram(policy_model, cfg)

    assert "contractNumber" not in text
    assert _relation_triples(text) == set()
    assert "%% Domain Model" not in text


def test_methods_use_kind_table_and_fallback():
    model = DomainModel(
        name="Methods",
        entities=[
            Entity(id="claim", name="Claim", kind="Claim"),
            Entity(id="odd", name="Odd", kind="Vehicle"),
        ],
    )
    cfg = RenderConfig(show_methods=True, include_metadata_header=False)
    mermaid = render_class_diagram(model, cfg).splitlines()

    claim = mermaid.index('    class claim["Claim"] {')
    assert mermaid[claim + 2 : claim + 6] == [
        "        +process()",
        "        +approve()",
        "        +reject()",
        "        +calculatePayout()",
    ]
    odd = mermaid.index('    class odd["Odd"] {')
    assert mermaid[odd + 1 : odd + 3] == ["        +getId()", "        +toString()"]

    plantuml = render_class_diagram(
        model, dataclasses.replace(cfg, grammar=DiagramFormat.PLANTUML)
    ).splitlines()
    claim = plantuml.index('class "Claim" as claim <<Claim>> {')
    assert plantuml[claim + 1] == "  --"
    assert plantuml[claim + 2] == "  + process()"


def test_style_block_lists_every_kind_and_skips_unknown():
    model = DomainModel(
        name="Styles",
        entities=[
            Entity(id="policy", name="Policy", kind="Policy"),
            Entity(id="odd", name="Odd", kind="Vehicle"),
        ],
    )

    mermaid = render_class_diagram(model, MERMAID)
    assert mermaid.count("    classDef ") == 7
    assert "    classDef policyClass fill:#e1f5fe,stroke:#01579b,stroke-width:2px" in mermaid
    assert '    cssClass "policy" policyClass' in mermaid
    assert '"odd"' not in mermaid.split("%% Styling")[1]
    # Unknown kinds get no annotation either.
    assert '    class odd["Odd"] {\n    }' in mermaid

    plantuml = render_class_diagram(model, PLANTUML)
    assert plantuml.count("BackgroundColor<<") == 7
    assert "  BorderColor<<Clause>> #880e4f" in plantuml
    assert 'class "Odd" as odd {' in plantuml


def test_direction_directives():
    model = DomainModel(name="Dir", entities=[Entity(id="a", name="A", kind="Policy")])

    assert "direction" not in render_class_diagram(
        model, RenderConfig(direction=Direction.TOP_DOWN, include_metadata_header=False)
    )
    lr = render_class_diagram(model, RenderConfig(direction=Direction.LEFT_TO_RIGHT))
    assert lr.splitlines()[1] == "    direction LR"

    pu = render_class_diagram(
        model, RenderConfig(grammar=DiagramFormat.PLANTUML, direction=Direction.RIGHT_TO_LEFT)
    )
    assert pu.splitlines()[2] == "left to right direction"


def test_theme_is_emitted_in_both_grammars():
    model = DomainModel(name="Theme", entities=[])

    mermaid = render_class_diagram(model, RenderConfig(theme="forest"))
    assert mermaid.splitlines()[0] == '%%{init:{"theme":"forest"}}%%'

    plantuml = render_class_diagram(model, RenderConfig(grammar=DiagramFormat.PLANTUML, theme="cerulean"))
    assert plantuml.splitlines()[1] == "!theme cerulean"


def test_render_diagram_wraps_output(policy_model, frozen_clock):
    output = render_diagram(policy_model, PLANTUML, clock=frozen_clock)

    assert output.diagram_type is DiagramType.CLASS
    assert output.format is DiagramFormat.PLANTUML
    assert output.file_extension == ".puml"
    assert output.title == "M - Domain Model"
    assert output.metadata["entities"] == 2
    assert output.content == render_class_diagram(policy_model, PLANTUML, clock=frozen_clock)


def test_render_config_accepts_plain_strings(policy_model):
    cfg = RenderConfig(grammar="PlantUML", direction="lr")

    assert cfg.grammar is DiagramFormat.PLANTUML
    assert cfg.direction is Direction.LEFT_TO_RIGHT
    assert render_diagram(policy_model, cfg).format is DiagramFormat.PLANTUML

    mermaid = render_class_diagram(policy_model, RenderConfig(grammar="mermaid", direction="LR"))
    assert "    direction LR" in mermaid.splitlines()


def test_render_config_rejects_unknown_grammar(policy_model):
    with pytest.raises(UnknownGrammarError, match="graphviz"):
        render_diagram(policy_model, RenderConfig(grammar="graphviz"))


def test_render_config_rejects_unknown_direction():
    with pytest.raises(ValueError, match="Unknown direction"):
        RenderConfig(direction="sideways")
