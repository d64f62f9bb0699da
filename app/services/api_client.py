from __future__ import annotations

import os

import requests

DEFAULT_API_URL = "http://localhost:9114"


def api_url() -> str:
    return os.environ.get("GRAPH_API_URL", DEFAULT_API_URL).rstrip("/")


def load_graph(base_url: str, timeout: float = 20.0) -> dict:
    """Fetch node graph data from the API."""
    response = requests.get(f"{base_url}/api/graph/data", timeout=timeout)
    response.raise_for_status()
    return response.json()
