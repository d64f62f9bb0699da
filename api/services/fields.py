"""Field descriptors for the node graph data frames."""
from __future__ import annotations

from typing import List, Tuple

FieldSpec = Tuple[str, str]

# Edge "mainstat" is declared as a string although edges carry the channel
# capacity as a number. Node graph clients key their column config on this.
EDGES_FIELDS: Tuple[FieldSpec, ...] = (
    ("id", "string"),
    ("source", "string"),
    ("target", "string"),
    ("mainstat", "string"),
    ("secondarystat", "number"),
)

NODES_FIELDS: Tuple[FieldSpec, ...] = (
    ("id", "string"),
    ("title", "string"),
    ("subtitle", "number"),
    ("mainstat", "string"),
    ("color", "string"),
)


def graph_fields() -> Tuple[List[FieldSpec], List[FieldSpec]]:
    """Return (edges_fields, nodes_fields) as ordered (field_name, type) pairs."""
    return list(EDGES_FIELDS), list(NODES_FIELDS)
