"""Channel graph client for an lnd node, over its REST gateway."""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import requests

from api.config import NodeConfig
from api.services.graph import ChannelRecord, PeerRecord

logger = logging.getLogger(__name__)

MACAROON_HEADER = "Grpc-Metadata-macaroon"


class TopologyFetchError(Exception):
    """The channel graph could not be fetched."""


class TransportError(TopologyFetchError):
    """Connection to the node could not be set up or authenticated."""


class UpstreamRPCError(TopologyFetchError):
    """The node rejected the call, timed out or answered garbage."""


@dataclass
class Topology:
    identity_pubkey: str
    peers: List[PeerRecord] = field(default_factory=list)
    channels: List[ChannelRecord] = field(default_factory=list)


def load_macaroon(macaroon_path: str) -> str:
    """Read a binary macaroon file and return it hex encoded."""
    if not macaroon_path:
        raise TransportError("No macaroon path configured")
    try:
        data = Path(macaroon_path).read_bytes()
    except OSError as e:
        logger.error("Cannot read macaroon file: %s", e)
        raise TransportError(f"Cannot read macaroon file: {e}") from e
    if not data:
        raise TransportError(f"Macaroon file '{macaroon_path}' is empty")
    return data.hex()


def parse_peer(raw: Dict[str, Any]) -> PeerRecord:
    return PeerRecord(
        pub_key=raw.get("pub_key") or "",
        alias=raw.get("alias") or "",
        last_update=int(raw.get("last_update", 0) or 0),
        color=raw.get("color") or "",
    )


def parse_channel(raw: Dict[str, Any]) -> ChannelRecord:
    # 64-bit integers are encoded as JSON strings by the gateway
    return ChannelRecord(
        channel_id=int(raw.get("channel_id", 0) or 0),
        node1_pub=raw.get("node1_pub") or "",
        node2_pub=raw.get("node2_pub") or "",
        capacity=int(raw.get("capacity", 0) or 0),
    )


class LndClient:
    """Reads node identity and the channel graph from lnd."""

    def __init__(self, config: NodeConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.base_url = f"https://{config.rpc_addr}"
        self._session = session

    def _connect(self) -> requests.Session:
        cert_path = Path(self.config.tls_cert_path)
        if not cert_path.is_file():
            logger.error("Cannot get node tls credentials: %s not found", cert_path)
            raise TransportError(f"TLS certificate '{cert_path}' not found")

        session = self._session or requests.Session()
        session.verify = str(cert_path)
        session.headers[MACAROON_HEADER] = load_macaroon(self.config.macaroon_path)
        return session

    def _get(self, session: requests.Session, path: str, deadline: float) -> Dict[str, Any]:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise UpstreamRPCError(f"Deadline exceeded before GET {path}")

        url = f"{self.base_url}{path}"
        try:
            response = session.get(url, timeout=remaining)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout as e:
            raise UpstreamRPCError(f"GET {path} timed out: {e}") from e
        except (requests.exceptions.SSLError, requests.exceptions.ConnectionError) as e:
            raise TransportError(f"Cannot reach {self.base_url}: {e}") from e
        except requests.exceptions.HTTPError as e:
            raise UpstreamRPCError(f"GET {path} failed: {e}") from e
        except ValueError as e:
            raise UpstreamRPCError(f"GET {path} returned invalid JSON: {e}") from e
        except requests.exceptions.RequestException as e:
            raise UpstreamRPCError(f"GET {path} failed: {e}") from e

    def _fetch_raw(
        self, session: requests.Session, deadline: float
    ) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        info = self._get(session, "/v1/getinfo", deadline)
        described = self._get(session, "/v1/graph", deadline)
        return info, described

    def fetch_topology(self, timeout: Optional[float] = None) -> Topology:
        """Fetch the node identity and the full channel graph.

        The timeout bounds both calls together, measured from the start of
        this call.
        """
        if timeout is None:
            timeout = self.config.fetch_timeout
        deadline = time.monotonic() + timeout

        session = self._connect()
        logger.info("Fetching channel graph from %s", self.base_url)

        # Per-call timeouts only bound connect and each socket read, so the
        # calls run on a worker and the caller stops waiting at the deadline.
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self._fetch_raw, session, deadline)
        try:
            info, described = future.result(timeout=timeout)
        except FutureTimeoutError as e:
            logger.error("Fetching channel graph exceeded %.1fs", timeout)
            raise UpstreamRPCError(f"Fetching channel graph exceeded {timeout}s") from e
        finally:
            executor.shutdown(wait=False)
            if self._session is None:
                session.close()

        try:
            topology = Topology(
                identity_pubkey=info.get("identity_pubkey", ""),
                peers=[parse_peer(n) for n in described.get("nodes") or []],
                channels=[parse_channel(e) for e in described.get("edges") or []],
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise UpstreamRPCError(f"Malformed channel graph: {e}") from e

        logger.info(
            "Fetched %d nodes and %d channels", len(topology.peers), len(topology.channels)
        )
        return topology
