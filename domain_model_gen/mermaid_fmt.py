from __future__ import annotations

import html
import json
import re
from typing import Any, Iterable, Optional

# Mermaid class/participant IDs must be alphanumeric/underscore and must not
# start with a digit.
MERMAID_ID_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

INDENT = "    "


def mermaid_block(code: str) -> str:
    """Wrap Mermaid source in a Markdown Mermaid code fence."""
    return "```mermaid\n" + code.rstrip() + "\n```\n"


def mm_text(text: object) -> str:
    """Escape text for Mermaid labels and message text."""
    normalized = re.sub(r"\s+", " ", html.unescape(str(text))).strip()
    return (
        normalized.replace("&", "#amp;")
        .replace("<", "#lt;")
        .replace(">", "#gt;")
        .replace('"', "#quot;")
        .replace("|", "#124;")
    )


def mm_init(**config_sections: Any) -> str:
    # Stable JSON: sorted keys + compact separators.
    payload = json.dumps(config_sections, sort_keys=True, separators=(",", ":"))
    return f"%%{{init:{payload}}}%%"


def mm_comment(text: str) -> str:
    # Ensure it won't be parsed as a directive.
    t = str(text).replace("\n", " ").strip()
    if t.startswith("{"):
        t = " " + t
    return f"{INDENT}%% {t}"


def mm_class_open(class_id: str, label: Optional[str] = None) -> str:
    if label is None or label == class_id:
        return f"{INDENT}class {class_id} {{"
    return f'{INDENT}class {class_id}["{mm_text(label)}"] {{'


def mm_class_annotation(kind: str) -> str:
    return f"{INDENT * 2}<<{mm_text(kind)}>>"


def mm_class_member(text: object) -> str:
    # Preserve punctuation; just prevent line breaks from corrupting Mermaid.
    s = str(text).replace("\r", " ").replace("\n", " ").strip()
    s = re.sub(r"\s+", " ", s)
    return f"{INDENT * 2}{s}"


def mm_class_relation(
    a: str,
    arrow: str,
    b: str,
    *,
    b_card: Optional[str] = None,
    label: Optional[str] = None,
) -> str:
    right = f'"{mm_text(b_card)}" {b}' if b_card else b
    line = f"{INDENT}{a} {arrow} {right}"
    if label:
        line += f" : {mm_text(label)}"
    return line


def mm_class_def(class_name: str, style: str) -> str:
    return f"{INDENT}classDef {class_name} {style}"


def mm_class_apply(node_ids: Iterable[str], class_name: str) -> str:
    # classDiagram binds a classDef to existing classes via cssClass, not `class`.
    ids = ",".join(node_ids)
    return f'{INDENT}cssClass "{ids}" {class_name}'


def mm_participant(pid: str, label: Optional[str] = None) -> str:
    if label is None or label == pid:
        return f"{INDENT}participant {pid}"
    return f'{INDENT}participant {pid} as "{mm_text(label)}"'
