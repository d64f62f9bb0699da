"""Runtime configuration for the graph API."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

DEFAULT_LISTEN_ADDRESS = ":9114"
DEFAULT_RPC_ADDR = "localhost:8080"
DEFAULT_TLS_CERT_PATH = str(Path.home() / ".lnd" / "tls.cert")
DEFAULT_FETCH_TIMEOUT = 15.0


@dataclass(frozen=True)
class NodeConfig:
    """Connection settings for the queried node, built once at startup."""
    listen_address: str = DEFAULT_LISTEN_ADDRESS
    rpc_addr: str = DEFAULT_RPC_ADDR
    tls_cert_path: str = DEFAULT_TLS_CERT_PATH
    macaroon_path: str = ""
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT


def parse_listen_address(address: str) -> Tuple[str, int]:
    """Split "host:port" (host optional) into a bindable (host, port)."""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid listen address '{address}', expected [host]:port")
    host = host.strip("[]") or "0.0.0.0"
    return host, int(port)
