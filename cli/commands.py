from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import Dict, List

from api.config import NodeConfig, parse_listen_address
from api.services.fields import graph_fields
from api.services.graph import NetworkGraph, build_network_graph
from api.services.lnd import LndClient

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def serve(config: NodeConfig) -> None:
    """Run the HTTP API until interrupted."""
    import uvicorn

    from api.main import create_app

    host, port = parse_listen_address(config.listen_address)
    logger.info("ListenAndServe %s", config.listen_address)
    uvicorn.run(create_app(config), host=host, port=port, log_config=None)


def fetch_graph(config: NodeConfig) -> NetworkGraph:
    """Fetch the channel graph once and build the node graph from it."""
    topology = LndClient(config).fetch_topology()
    return build_network_graph(topology.identity_pubkey, topology.peers, topology.channels)


def graph_to_dict(graph: NetworkGraph) -> Dict[str, List[dict]]:
    """Same shape as /api/graph/data, absent fields dropped."""
    def compact(item) -> dict:
        return {k: v for k, v in asdict(item).items() if v is not None}

    return {
        "edges": [compact(e) for e in graph.edges],
        "nodes": [compact(n) for n in graph.nodes],
    }


def fields_to_dict() -> Dict[str, List[dict]]:
    edges_fields, nodes_fields = graph_fields()
    return {
        "edges_fields": [{"field_name": n, "type": t} for n, t in edges_fields],
        "nodes_fields": [{"field_name": n, "type": t} for n, t in nodes_fields],
    }


def dump_json(payload: dict, indent: int = 2) -> str:
    return json.dumps(payload, indent=indent or None)
