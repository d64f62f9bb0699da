import tempfile
import threading
import time
import unittest
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from dataclasses import replace
from pathlib import Path
from unittest import mock

import requests

from api.config import NodeConfig
from api.services.lnd import (
    MACAROON_HEADER,
    LndClient,
    TransportError,
    UpstreamRPCError,
    load_macaroon,
    parse_channel,
    parse_peer,
)

GETINFO = {"identity_pubkey": "02aa", "alias": "mynode"}
DESCRIBE_GRAPH = {
    "nodes": [
        {"pub_key": "02aa", "alias": "mynode", "last_update": 1700000000, "color": "#3399ff"},
        {"pub_key": "03bb", "last_update": 0, "color": "#000000"},
    ],
    "edges": [
        {
            "channel_id": "867524591418998785",
            "node1_pub": "02aa",
            "node2_pub": "03bb",
            "capacity": "5000000",
        },
    ],
}


def clock(*readings):
    remaining = list(readings)

    def monotonic():
        return remaining.pop(0) if len(remaining) > 1 else remaining[0]

    return monotonic


def json_response(payload, status_code=200):
    response = mock.Mock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} Server Error"
        )
    return response


class LndClientTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        tmp = Path(self._tmp.name)
        self.cert_path = tmp / "tls.cert"
        self.cert_path.write_text("-----BEGIN CERTIFICATE-----\n")
        self.macaroon_path = tmp / "readonly.macaroon"
        self.macaroon_path.write_bytes(b"\x02\x01\x03lnd")
        self.config = NodeConfig(
            rpc_addr="node.local:8080",
            tls_cert_path=str(self.cert_path),
            macaroon_path=str(self.macaroon_path),
            fetch_timeout=15.0,
        )
        self.session = mock.Mock()
        self.session.headers = {}

    def tearDown(self):
        self._tmp.cleanup()

    def client(self, **overrides):
        return LndClient(replace(self.config, **overrides), session=self.session)


class FetchTopologyTest(LndClientTestCase):
    def test_fetches_identity_and_graph(self):
        self.session.get.side_effect = [json_response(GETINFO), json_response(DESCRIBE_GRAPH)]
        topology = self.client().fetch_topology()

        self.assertEqual(topology.identity_pubkey, "02aa")
        self.assertEqual([p.pub_key for p in topology.peers], ["02aa", "03bb"])
        self.assertEqual(topology.peers[1].alias, "")
        self.assertEqual(topology.channels[0].channel_id, 867524591418998785)
        self.assertEqual(topology.channels[0].capacity, 5000000)

        urls = [c.args[0] for c in self.session.get.call_args_list]
        self.assertEqual(
            urls, ["https://node.local:8080/v1/getinfo", "https://node.local:8080/v1/graph"]
        )
        self.assertEqual(self.session.verify, str(self.cert_path))
        self.assertEqual(self.session.headers[MACAROON_HEADER], "020103" + b"lnd".hex())

    def test_calls_share_one_deadline(self):
        self.session.get.side_effect = [json_response(GETINFO), json_response(DESCRIBE_GRAPH)]
        with mock.patch("api.services.lnd.time.monotonic", side_effect=clock(100.0, 100.0, 104.0)):
            self.client().fetch_topology(timeout=15.0)
        timeouts = [c.kwargs["timeout"] for c in self.session.get.call_args_list]
        self.assertEqual(timeouts, [15.0, 11.0])

    def test_deadline_exceeded(self):
        self.session.get.side_effect = [json_response(GETINFO), json_response(DESCRIBE_GRAPH)]
        with mock.patch("api.services.lnd.time.monotonic", side_effect=clock(100.0, 100.0, 116.0)):
            with self.assertRaises(UpstreamRPCError):
                self.client().fetch_topology(timeout=15.0)
        self.assertEqual(self.session.get.call_count, 1)

    def test_empty_graph(self):
        self.session.get.side_effect = [json_response(GETINFO), json_response({})]
        topology = self.client().fetch_topology()
        self.assertEqual(topology.peers, [])
        self.assertEqual(topology.channels, [])

    def test_timeout_is_upstream_error(self):
        self.session.get.side_effect = requests.exceptions.ReadTimeout("read timed out")
        with self.assertRaises(UpstreamRPCError):
            self.client().fetch_topology()

    def test_http_error_is_upstream_error(self):
        self.session.get.side_effect = [json_response({"message": "denied"}, status_code=500)]
        with self.assertRaises(UpstreamRPCError):
            self.client().fetch_topology()

    def test_invalid_json_is_upstream_error(self):
        response = json_response(None)
        response.json.side_effect = ValueError("Expecting value")
        self.session.get.side_effect = [response]
        with self.assertRaises(UpstreamRPCError):
            self.client().fetch_topology()

    def test_connection_error_is_transport_error(self):
        self.session.get.side_effect = requests.exceptions.ConnectionError("refused")
        with self.assertRaises(TransportError):
            self.client().fetch_topology()

    def test_dropped_body_is_upstream_error(self):
        self.session.get.side_effect = requests.exceptions.ChunkedEncodingError(
            "Connection broken: IncompleteRead(0 bytes read, 38 more expected)"
        )
        with self.assertRaises(UpstreamRPCError):
            self.client().fetch_topology()

    def test_other_request_errors_are_upstream_errors(self):
        errors = [
            requests.exceptions.ContentDecodingError("bad gzip"),
            requests.exceptions.InvalidURL("Failed to parse: https://node:port"),
            requests.exceptions.TooManyRedirects("Exceeded 30 redirects."),
        ]
        for error in errors:
            with self.subTest(error=error):
                self.session.get.side_effect = error
                with self.assertRaises(UpstreamRPCError):
                    self.client().fetch_topology()

    def test_ssl_error_is_transport_error(self):
        self.session.get.side_effect = requests.exceptions.SSLError("bad certificate")
        with self.assertRaises(TransportError):
            self.client().fetch_topology()

    def test_missing_certificate(self):
        with self.assertRaises(TransportError):
            self.client(tls_cert_path=str(self.cert_path) + ".missing").fetch_topology()
        self.session.get.assert_not_called()

    def test_missing_macaroon(self):
        with self.assertRaises(TransportError):
            self.client(macaroon_path=str(self.macaroon_path) + ".missing").fetch_topology()
        self.session.get.assert_not_called()


class LoadMacaroonTest(LndClientTestCase):
    def test_hex_encodes(self):
        self.assertEqual(load_macaroon(str(self.macaroon_path)), "0201036c6e64")

    def test_empty_path(self):
        with self.assertRaises(TransportError):
            load_macaroon("")

    def test_empty_file(self):
        self.macaroon_path.write_bytes(b"")
        with self.assertRaises(TransportError):
            load_macaroon(str(self.macaroon_path))


class ParseRecordsTest(unittest.TestCase):
    def test_parse_peer_null_strings(self):
        peer = parse_peer({"pub_key": "02aa", "alias": None, "last_update": 0, "color": None})
        self.assertEqual((peer.alias, peer.color), ("", ""))

    def test_parse_peer_defaults(self):
        peer = parse_peer({"pub_key": "02aa"})
        self.assertEqual((peer.alias, peer.last_update, peer.color), ("", 0, ""))

    def test_parse_channel_string_integers(self):
        channel = parse_channel(
            {"channel_id": "18446744073709551615", "node1_pub": "a", "node2_pub": "b", "capacity": "42"}
        )
        self.assertEqual(channel.channel_id, 2**64 - 1)
        self.assertEqual(channel.capacity, 42)


class SlowBodyHandler(BaseHTTPRequestHandler):
    body = b'{"identity_pubkey": "02aa", "alias": ""}'

    def do_GET(self):
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(self.body)))
        self.end_headers()
        try:
            for i in range(len(self.body)):
                self.wfile.write(self.body[i:i + 1])
                self.wfile.flush()
                time.sleep(0.1)
        except (BrokenPipeError, ConnectionResetError):
            return

    def log_message(self, format, *args):
        pass


class FetchDeadlineTest(LndClientTestCase):
    def setUp(self):
        super().setUp()
        self.server = ThreadingHTTPServer(("127.0.0.1", 0), SlowBodyHandler)
        self.server.daemon_threads = True
        threading.Thread(target=self.server.serve_forever, daemon=True).start()
        self.session = requests.Session()

    def tearDown(self):
        self.server.shutdown()
        self.server.server_close()
        self.session.close()
        super().tearDown()

    def test_slow_body_is_cut_off_at_deadline(self):
        client = self.client()
        client.base_url = f"http://127.0.0.1:{self.server.server_address[1]}"

        started = time.monotonic()
        with self.assertRaises(UpstreamRPCError):
            client.fetch_topology(timeout=1.0)
        self.assertLess(time.monotonic() - started, 1.5)


if __name__ == "__main__":
    unittest.main()
