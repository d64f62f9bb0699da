"""Node graph Pydantic models."""
from typing import List, Optional

from pydantic import BaseModel


class GraphNode(BaseModel):
    """A Lightning node."""

    id: str
    title: Optional[str] = None
    subtitle: Optional[int] = None
    mainstat: Optional[str] = None
    color: Optional[str] = None


class GraphEdge(BaseModel):
    """A channel between two nodes."""

    id: str
    source: str
    target: str
    mainstat: Optional[int] = None
    secondarystat: Optional[int] = None


class GraphResponse(BaseModel):
    """Response containing graph edges and nodes."""

    edges: List[GraphEdge]
    nodes: List[GraphNode]


class FieldDescriptor(BaseModel):
    field_name: str
    type: str


class GraphFieldsResponse(BaseModel):
    """Column types of the edges and nodes frames."""

    edges_fields: List[FieldDescriptor]
    nodes_fields: List[FieldDescriptor]
