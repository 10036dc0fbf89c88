# domain_model_gen/constants.py
from __future__ import annotations

SCHEMA_VERSION_DEFAULT = "2.0"
MODEL_VERSION_DEFAULT = "1.0.0"
NAMESPACE_DEFAULT = "nl.sivi.afd.insurance"
AUTHOR_DEFAULT = "SIVI AFD 2.0 Model Creator"

# Input files picked up by suite generation (sorted before processing).
MODEL_FILE_SUFFIXES: tuple[str, ...] = (".json", ".yaml", ".yml")

MODEL_FILE_SUFFIX = ".model.json"
DIAGRAM_FILE_STEM_SUFFIX = "-diagram"

# Cardinalities that are rendered in canonical form. Lookup keys have all
# whitespace removed; anything else is rendered verbatim.
CANONICAL_CARDINALITIES: dict[str, str] = {
    "1": "1",
    "0..1": "0..1",
    "1..*": "1..*",
    "0..*": "0..*",
    "*": "*",
}

FALLBACK_METHODS: tuple[str, ...] = ("getId", "toString")

ACK_MESSAGE = "Acknowledged"

IMAGE_WIDTH_DEFAULT = 1400
IMAGE_HEIGHT_DEFAULT = 1000
