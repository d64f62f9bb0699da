"""Channel graph to node graph transformation."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

NO_COLOR = "#000000"
SELF_FLAG = "true"

_UINT64_MASK = (1 << 64) - 1


@dataclass(frozen=True)
class PeerRecord:
    """A node as reported by the channel graph."""
    pub_key: str
    alias: str = ""
    last_update: int = 0  # Unix seconds, <= 0 means never announced
    color: str = ""


@dataclass(frozen=True)
class ChannelRecord:
    """A channel between two nodes."""
    channel_id: int
    node1_pub: str
    node2_pub: str
    capacity: int = 0  # sats


@dataclass(frozen=True)
class GraphNode:
    """A node in the rendered graph."""
    id: str
    title: Optional[str] = None
    subtitle: Optional[int] = None
    mainstat: Optional[str] = None  # "true" on the queried node
    color: Optional[str] = None


@dataclass(frozen=True)
class GraphEdge:
    """A channel in the rendered graph."""
    id: str
    source: str
    target: str
    mainstat: Optional[int] = None  # capacity in sats
    secondarystat: Optional[int] = None


@dataclass
class NetworkGraph:
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)


def to_unsigned(value: int) -> int:
    """Reinterpret a signed 64-bit value as unsigned."""
    return int(value) & _UINT64_MASK


def is_placeholder_peer(peer: PeerRecord) -> bool:
    """True for peers that were never announced and carry no alias or color."""
    return (
        peer.last_update <= 0
        and peer.alias == ""
        and (peer.color == "" or peer.color == NO_COLOR)
    )


def is_edge_orphaned(known_nodes: Set[str], channel: ChannelRecord) -> bool:
    return channel.node1_pub not in known_nodes or channel.node2_pub not in known_nodes


def build_network_graph(
    identity_pubkey: str,
    peers: Iterable[PeerRecord],
    channels: Iterable[ChannelRecord],
) -> NetworkGraph:
    """Build a node graph from the raw channel graph.

    Args:
        identity_pubkey: Pub key of the queried node, flagged with mainstat "true"
        peers: Nodes in the order reported upstream
        channels: Channels in the order reported upstream

    Returns:
        NetworkGraph whose edges only reference nodes it contains
    """
    graph = NetworkGraph()
    known_nodes: Set[str] = set()

    for peer in peers:
        if is_placeholder_peer(peer):
            continue
        subtitle = to_unsigned(peer.last_update)
        graph.nodes.append(GraphNode(
            id=peer.pub_key,
            title=peer.alias or None,
            subtitle=subtitle or None,
            mainstat=SELF_FLAG if peer.pub_key == identity_pubkey else None,
            color=peer.color or None,
        ))
        known_nodes.add(peer.pub_key)

    for channel in channels:
        if is_edge_orphaned(known_nodes, channel):
            continue
        capacity = to_unsigned(channel.capacity)
        graph.edges.append(GraphEdge(
            id=str(to_unsigned(channel.channel_id)),
            source=channel.node1_pub,
            target=channel.node2_pub,
            mainstat=capacity or None,
        ))

    return graph
