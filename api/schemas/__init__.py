"""Pydantic schemas for API request/response models."""
from api.schemas.graph import (
    FieldDescriptor,
    GraphEdge,
    GraphFieldsResponse,
    GraphNode,
    GraphResponse,
)

__all__ = [
    "FieldDescriptor",
    "GraphEdge",
    "GraphFieldsResponse",
    "GraphNode",
    "GraphResponse",
]
