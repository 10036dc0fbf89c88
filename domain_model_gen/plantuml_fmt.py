from __future__ import annotations

import re
from typing import Optional

INDENT = "  "


def plantuml_block(code: str) -> str:
    """Wrap PlantUML source in a Markdown PlantUML code fence."""
    return "```plantuml\n" + code.rstrip() + "\n```\n"


def pu_text(text: object) -> str:
    """Fold text onto one line and neutralise double quotes."""
    s = re.sub(r"\s+", " ", str(text)).strip()
    return s.replace('"', "'")


def pu_comment(text: str) -> str:
    return "' " + str(text).replace("\n", " ").strip()


def pu_stereotype(kind: str) -> str:
    return f"<<{pu_text(kind)}>>"


def pu_class_open(class_id: str, label: Optional[str] = None, stereotype: str = "") -> str:
    head = f"class {class_id}" if label is None or label == class_id else f'class "{pu_text(label)}" as {class_id}'
    if stereotype:
        head += f" {stereotype}"
    return head + " {"


def pu_class_member(text: object) -> str:
    return INDENT + pu_text(text)


def pu_class_relation(
    a: str,
    arrow: str,
    b: str,
    *,
    b_card: Optional[str] = None,
    label: Optional[str] = None,
) -> str:
    right = f'"{pu_text(b_card)}" {b}' if b_card else b
    line = f"{a} {arrow} {right}"
    if label:
        line += f" : {pu_text(label)}"
    return line


def pu_participant(pid: str, label: Optional[str] = None) -> str:
    if label is None or label == pid:
        return f"participant {pid}"
    return f'participant "{pu_text(label)}" as {pid}'
