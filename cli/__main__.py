from typing import Optional

import typer

from api.config import (
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_LISTEN_ADDRESS,
    DEFAULT_RPC_ADDR,
    DEFAULT_TLS_CERT_PATH,
    NodeConfig,
)
from api.services.lnd import TopologyFetchError
from cli import commands

app = typer.Typer(add_completion=False)


def node_config(
    rpc_addr: str,
    tls_cert_path: str,
    macaroon_path: str,
    fetch_timeout: float,
    listen_address: str = DEFAULT_LISTEN_ADDRESS,
) -> NodeConfig:
    return NodeConfig(
        listen_address=listen_address,
        rpc_addr=rpc_addr,
        tls_cert_path=tls_cert_path,
        macaroon_path=macaroon_path,
        fetch_timeout=fetch_timeout,
    )


RpcAddr = typer.Option(
    DEFAULT_RPC_ADDR, "--rpc-addr", envvar="RPC_ADDR", help="lnd REST host:port"
)
TlsCertPath = typer.Option(
    DEFAULT_TLS_CERT_PATH, "--tls-cert-path", envvar="TLS_CERT_PATH",
    help="Path to the node's TLS certificate",
)
MacaroonPath = typer.Option(
    "", "--macaroon-path", envvar="MACAROON_PATH", help="Path to the read only macaroon"
)
FetchTimeout = typer.Option(
    DEFAULT_FETCH_TIMEOUT, "--fetch-timeout", envvar="FETCH_TIMEOUT",
    help="Seconds allowed for fetching the channel graph",
)


@app.command("serve")
def serve(
    listen_address: str = typer.Option(
        DEFAULT_LISTEN_ADDRESS, "--listen-address", envvar="LISTEN_ADDRESS",
        help="Address to listen on for the web interface",
    ),
    rpc_addr: str = RpcAddr,
    tls_cert_path: str = TlsCertPath,
    macaroon_path: str = MacaroonPath,
    fetch_timeout: float = FetchTimeout,
    log_level: str = typer.Option("INFO", "--log-level", envvar="LOG_LEVEL"),
) -> None:
    """Serve the node graph API."""
    commands.configure_logging(log_level)
    config = node_config(rpc_addr, tls_cert_path, macaroon_path, fetch_timeout, listen_address)
    try:
        commands.serve(config)
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=2)


@app.command("graph")
def graph(
    rpc_addr: str = RpcAddr,
    tls_cert_path: str = TlsCertPath,
    macaroon_path: str = MacaroonPath,
    fetch_timeout: float = FetchTimeout,
    output: Optional[typer.FileTextWrite] = typer.Option(None, "--output", "-o"),
) -> None:
    """Fetch the channel graph once and print it as node graph JSON."""
    commands.configure_logging("WARNING")
    config = node_config(rpc_addr, tls_cert_path, macaroon_path, fetch_timeout)
    try:
        result = commands.fetch_graph(config)
    except TopologyFetchError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(commands.dump_json(commands.graph_to_dict(result)), file=output)


@app.command("fields")
def fields() -> None:
    """Print the field descriptors."""
    typer.echo(commands.dump_json(commands.fields_to_dict()))


if __name__ == "__main__":
    app()
