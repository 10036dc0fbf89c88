from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Union

from ..constants import ACK_MESSAGE
from ..errors import UnknownProcessError
from ..mermaid_fmt import INDENT, mm_participant, mm_text
from ..plantuml_fmt import pu_participant, pu_text
from .render_config import DiagramFormat


@dataclass(frozen=True)
class ProcessStep:
    source: str
    target: str
    message: str


@dataclass(frozen=True)
class ProcessTemplate:
    name: str
    title: str
    participants: tuple[str, ...]
    steps: tuple[ProcessStep, ...]


def _template(name: str, title: str, participants: tuple[str, ...], *steps: tuple[str, str, str]) -> ProcessTemplate:
    return ProcessTemplate(
        name=name,
        title=title,
        participants=participants,
        steps=tuple(ProcessStep(*step) for step in steps),
    )


PROCESS_TEMPLATES: dict[str, ProcessTemplate] = {
    t.name: t
    for t in (
        _template(
            "policy-creation",
            "Policy Creation Process",
            ("Customer", "Broker", "Underwriter", "PolicySystem"),
            ("Customer", "Broker", "Request Quote"),
            ("Broker", "Underwriter", "Submit Application"),
            ("Underwriter", "PolicySystem", "Create Policy"),
            ("PolicySystem", "Underwriter", "Policy Created"),
            ("Underwriter", "Broker", "Policy Approved"),
            ("Broker", "Customer", "Policy Documents"),
        ),
        _template(
            "claim-processing",
            "Claim Processing Flow",
            ("Insured", "ClaimAgent", "Adjuster", "ClaimSystem"),
            ("Insured", "ClaimAgent", "Report Claim"),
            ("ClaimAgent", "ClaimSystem", "Create Claim Record"),
            ("ClaimAgent", "Adjuster", "Assign for Investigation"),
            ("Adjuster", "ClaimSystem", "Update Claim Status"),
            ("ClaimSystem", "Insured", "Claim Settlement"),
        ),
    )
}


def list_processes() -> list[str]:
    return list(PROCESS_TEMPLATES)


def get_process(name: str) -> ProcessTemplate:
    try:
        return copy.deepcopy(PROCESS_TEMPLATES[name])
    except KeyError:
        raise UnknownProcessError(name, list_processes()) from None


def _mermaid_sequence(process: ProcessTemplate) -> list[str]:
    lines = ["sequenceDiagram", f"{INDENT}title {mm_text(process.title)}", ""]
    lines.extend(mm_participant(p) for p in process.participants)
    lines.append("")

    last = len(process.steps) - 1
    for i, step in enumerate(process.steps):
        lines.append(f"{INDENT}{step.source}->>+{step.target}: {mm_text(step.message)}")
        # The final step is not acknowledged.
        if i < last:
            lines.append(f"{INDENT}{step.target}-->>-{step.source}: {ACK_MESSAGE}")
    return lines


def _plantuml_sequence(process: ProcessTemplate) -> list[str]:
    lines = ["@startuml", f"title {pu_text(process.title)}", ""]
    lines.extend(pu_participant(p) for p in process.participants)
    lines.append("")
    for step in process.steps:
        lines.append(f"{step.source} -> {step.target}: {pu_text(step.message)}")
    lines.append("@enduml")
    return lines


def render_sequence(name: str, fmt: Union[DiagramFormat, str] = DiagramFormat.MERMAID) -> str:
    """Expand a named process template into sequence-diagram source."""
    process = get_process(name)
    grammar = DiagramFormat.parse(fmt)
    if grammar is DiagramFormat.MERMAID:
        lines = _mermaid_sequence(process)
    else:
        lines = _plantuml_sequence(process)
    return "\n".join(lines) + "\n"
