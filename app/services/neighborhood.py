"""Neighbourhood of the local node within the node graph."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

import pandas as pd

SATS_PER_BTC = 100_000_000
DEFAULT_DEPTH = 2
DEFAULT_CHANNEL_LIMITS = (2, 30)


def truncate_number(number: float, precision: int = 4) -> float:
    """Round to `precision` significant digits."""
    return float(f"{number:.{precision}g}")


@dataclass
class NodeStats:
    """A graph node with its channel totals."""
    id: str
    alias: str
    color: str
    is_local: bool
    channels: int = 0
    capacity_btc: float = 0.0


@dataclass
class ChannelLink:
    id: str
    source: str
    target: str
    capacity: int


@dataclass
class Neighborhood:
    center: Optional[NodeStats]
    depth: int
    nodes: List[NodeStats] = field(default_factory=list)
    links: List[ChannelLink] = field(default_factory=list)
    total_nodes: int = 0
    total_links: int = 0

    @property
    def summary(self) -> str:
        return (
            f"{max(len(self.nodes) - 1, 0)} nodes, {len(self.links)} channels "
            f"within {self.depth} hops"
        )


def node_stats(graph: dict) -> Tuple[Dict[str, NodeStats], List[ChannelLink]]:
    """Parse /api/graph/data output and total up channels per node."""
    nodes: Dict[str, NodeStats] = {}
    for raw in graph.get("nodes", []):
        nodes[raw["id"]] = NodeStats(
            id=raw["id"],
            alias=raw.get("title", ""),
            color=raw.get("color", ""),
            is_local=bool(raw.get("mainstat")),
        )

    links: List[ChannelLink] = []
    for raw in graph.get("edges", []):
        source, target = raw["source"], raw["target"]
        if source not in nodes or target not in nodes:
            continue
        capacity = int(raw.get("mainstat", 0))
        btc = truncate_number(capacity / SATS_PER_BTC)
        for node_id in (source, target):
            stats = nodes[node_id]
            stats.channels += 1
            stats.capacity_btc = truncate_number(stats.capacity_btc + btc)
        links.append(ChannelLink(id=raw["id"], source=source, target=target, capacity=capacity))

    return nodes, links


def find_local_node(nodes: Dict[str, NodeStats]) -> Optional[NodeStats]:
    return next((n for n in nodes.values() if n.is_local), None)


def extract_neighborhood(
    graph: dict,
    depth: int = DEFAULT_DEPTH,
    channel_limits: Tuple[int, int] = DEFAULT_CHANNEL_LIMITS,
) -> Neighborhood:
    """Select the nodes within `depth` hops of the local node.

    Neighbours are only expanded further when their channel count lies
    within `channel_limits`, which keeps large routing hubs from pulling
    in most of the network.
    """
    nodes, links = node_stats(graph)
    center = find_local_node(nodes)
    result = Neighborhood(
        center=center, depth=depth, total_nodes=len(nodes), total_links=len(links)
    )
    if center is None:
        return result

    adjacency: Dict[str, List[str]] = {}
    for link in links:
        adjacency.setdefault(link.source, []).append(link.target)
        adjacency.setdefault(link.target, []).append(link.source)

    low, high = channel_limits
    visited: List[str] = [center.id]
    seen: Set[str] = {center.id}
    expanded: Set[str] = set()
    frontier = [center.id]
    for _ in range(depth):
        next_frontier: List[str] = []
        for node_id in frontier:
            if node_id != center.id and not low <= nodes[node_id].channels <= high:
                continue
            expanded.add(node_id)
            for peer in adjacency.get(node_id, []):
                if peer not in seen:
                    seen.add(peer)
                    visited.append(peer)
                    next_frontier.append(peer)
        frontier = next_frontier

    result.nodes = [nodes[node_id] for node_id in visited]
    result.links = [
        link for link in links
        if link.source in expanded or link.target in expanded
    ]
    return result


def neighborhood_table(neighborhood: Neighborhood) -> pd.DataFrame:
    """Tabular summary of the neighbourhood nodes, busiest first."""
    if not neighborhood.nodes:
        return pd.DataFrame()

    df = pd.DataFrame([
        {
            "alias": n.alias,
            "pub_key": n.id,
            "channels": n.channels,
            "capacity_btc": n.capacity_btc,
            "local": n.is_local,
        }
        for n in neighborhood.nodes
    ])
    return df.sort_values("channels", ascending=False, kind="stable").reset_index(drop=True)
