"""Channel graph visualization view."""
from __future__ import annotations

import json
import math

import requests
import streamlit as st
import streamlit.components.v1 as components

from services.api_client import load_graph
from services.neighborhood import (
    DEFAULT_CHANNEL_LIMITS,
    DEFAULT_DEPTH,
    Neighborhood,
    extract_neighborhood,
    neighborhood_table,
)

DEFAULT_NODE_COLOR = "#999999"


def generate_vis_html(neighborhood: Neighborhood, height: int = 600) -> str:
    """Generate vis.js HTML for the neighbourhood graph."""
    colors = {}
    vis_nodes = []
    for node in neighborhood.nodes:
        color = node.color or DEFAULT_NODE_COLOR
        colors[node.id] = color
        vis_nodes.append({
            "id": node.id,
            "label": node.alias or node.id[:12],
            "title": f"{node.alias or node.id}<br>{node.capacity_btc} BTC<br>{node.channels} channels",
            "color": {"background": "#ffffff", "border": color},
            "size": 12 if node.channels < 2 else math.log(node.channels) * 10,
            "fixed": node.is_local,
        })

    vis_edges = []
    for link in neighborhood.links:
        vis_edges.append({
            "from": link.source,
            "to": link.target,
            "width": 1 + math.log(math.log(link.capacity)) if link.capacity > math.e else 1,
            "title": f"{link.id}<br>{link.capacity:,} sats",
            "color": colors.get(link.source, DEFAULT_NODE_COLOR),
        })

    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <script type="text/javascript" src="https://unpkg.com/vis-network/standalone/umd/vis-network.min.js"></script>
        <style type="text/css">
            #graph {{
                width: 100%;
                height: {height}px;
                border: 1px solid #333;
                background-color: #1a1a2e;
            }}
        </style>
    </head>
    <body>
        <div id="graph"></div>
        <script type="text/javascript">
            var nodes = new vis.DataSet({json.dumps(vis_nodes)});
            var edges = new vis.DataSet({json.dumps(vis_edges)});

            var container = document.getElementById('graph');
            var data = {{ nodes: nodes, edges: edges }};
            var options = {{
                nodes: {{
                    shape: 'dot',
                    borderWidth: 3,
                    font: {{ size: 12, color: '#ffffff' }}
                }},
                edges: {{
                    arrows: {{ to: {{ enabled: true, scaleFactor: 0.4 }} }},
                    smooth: {{ type: 'curvedCW', roundness: 0.3 }}
                }},
                physics: {{
                    solver: 'forceAtlas2Based',
                    forceAtlas2Based: {{
                        gravitationalConstant: -100,
                        springLength: 30
                    }},
                    stabilization: {{ iterations: 150 }}
                }},
                interaction: {{
                    hover: true,
                    tooltipDelay: 100
                }}
            }};

            var network = new vis.Network(container, data, options);
        </script>
    </body>
    </html>
    """


def page_node_graph(base_url: str) -> None:
    """Channel graph around the local node."""
    st.subheader("Channel Graph")

    col1, col2 = st.columns([1, 2])
    with col1:
        depth = st.slider("Hops", 1, 4, DEFAULT_DEPTH, key="graph_depth")
    with col2:
        channel_limits = st.slider(
            "Expand nodes with channel count in",
            1, 200, DEFAULT_CHANNEL_LIMITS,
            key="graph_channel_limits",
        )

    with st.spinner("Loading channel graph..."):
        try:
            graph = load_graph(base_url)
        except requests.RequestException as e:
            st.error(f"Could not load graph from {base_url}: {e}")
            return

    neighborhood = extract_neighborhood(graph, depth=depth, channel_limits=channel_limits)
    if neighborhood.center is None:
        st.warning("The local node is not part of the channel graph.")
        return

    st.markdown(f"**Graph:** {neighborhood.summary}")
    st.caption(
        f"{neighborhood.total_nodes} nodes, {neighborhood.total_links} channels total"
    )

    components.html(generate_vis_html(neighborhood), height=620)

    st.markdown("### Nodes")
    st.dataframe(neighborhood_table(neighborhood), use_container_width=True)
