"""FastAPI application serving the Lightning channel graph."""
from typing import Optional

from fastapi import FastAPI, Response

from api.config import NodeConfig
from api.routers import graph
from api.services.lnd import LndClient

VERSION = "0.1.0"


def create_app(config: Optional[NodeConfig] = None, fetcher=None) -> FastAPI:
    """Build the application.

    Args:
        config: Node connection settings, defaults apply when omitted
        fetcher: Object with a fetch_topology() method, an LndClient for
            the configured node when omitted
    """
    config = config or NodeConfig()

    app = FastAPI(
        title="Lightning Node Graph API",
        description="""
        Node graph data source for a Lightning node.

        Provides access to:
        - The channel graph as nodes and edges
        - Field descriptors for the nodes and edges frames
        """,
        version=VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    app.state.config = config
    app.state.fetcher = fetcher or LndClient(config)

    app.include_router(graph.router, prefix="/api")

    @app.get("/api/health")
    def health_check():
        """Health check endpoint."""
        return Response(status_code=200)

    return app
