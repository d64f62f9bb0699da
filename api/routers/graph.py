"""Node graph API endpoints."""
import logging

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from api.schemas.graph import (
    FieldDescriptor,
    GraphEdge,
    GraphFieldsResponse,
    GraphNode,
    GraphResponse,
)
from api.services.fields import graph_fields
from api.services.graph import build_network_graph
from api.services.lnd import TopologyFetchError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/graph", tags=["graph"])


@router.get("/fields", response_model=GraphFieldsResponse)
def get_graph_fields():
    """Describe the fields of the edges and nodes frames."""
    edges_fields, nodes_fields = graph_fields()
    return GraphFieldsResponse(
        edges_fields=[FieldDescriptor(field_name=n, type=t) for n, t in edges_fields],
        nodes_fields=[FieldDescriptor(field_name=n, type=t) for n, t in nodes_fields],
    )


@router.get(
    "/data",
    response_model=GraphResponse,
    response_model_exclude_none=True,
    responses={500: {"content": {"text/plain": {}}, "description": "Fetch failed"}},
)
def get_graph_data(request: Request):
    """Fetch the channel graph from the node and return it as a node graph."""
    fetcher = request.app.state.fetcher
    try:
        topology = fetcher.fetch_topology()
    except TopologyFetchError as e:
        logger.error("error when getting graph: %s", e)
        return PlainTextResponse("Internal Error", status_code=500)

    graph = build_network_graph(topology.identity_pubkey, topology.peers, topology.channels)

    return GraphResponse(
        edges=[
            GraphEdge(
                id=e.id,
                source=e.source,
                target=e.target,
                mainstat=e.mainstat,
                secondarystat=e.secondarystat,
            )
            for e in graph.edges
        ],
        nodes=[
            GraphNode(
                id=n.id,
                title=n.title,
                subtitle=n.subtitle,
                mainstat=n.mainstat,
                color=n.color,
            )
            for n in graph.nodes
        ],
    )
