from unittest.mock import MagicMock

import pytest

from qa_bridge.core.server import GuardedH11Protocol, is_permitted_peer


@pytest.mark.parametrize(
    "host",
    ["127.0.0.1", "::1", "172.17.0.1", "172.18.5.20", "::ffff:172.17.0.3"],
)
def test_loopback_and_container_peers_are_permitted(host):
    assert is_permitted_peer(host)


@pytest.mark.parametrize(
    "host",
    [None, "", "10.0.0.5", "192.168.1.10", "8.8.8.8", "::ffff:10.0.0.1", "fe80::1", "127.0.0.2", "testclient"],
)
def test_other_peers_are_rejected(host):
    assert not is_permitted_peer(host)


def _protocol_for_peer(peer):
    protocol = GuardedH11Protocol.__new__(GuardedH11Protocol)
    protocol.client = None
    transport = MagicMock()
    transport.get_extra_info.side_effect = lambda name, default=None: peer if name == "peername" else default
    return protocol, transport


def test_rejected_peer_connection_is_closed(monkeypatch):
    def fake_connection_made(self, transport):
        self.client = ("10.1.2.3", 5555)

    monkeypatch.setattr("uvicorn.protocols.http.h11_impl.H11Protocol.connection_made", fake_connection_made)
    protocol, transport = _protocol_for_peer(("10.1.2.3", 5555))

    protocol.connection_made(transport)

    transport.close.assert_called_once()


def test_permitted_peer_connection_stays_open(monkeypatch):
    def fake_connection_made(self, transport):
        self.client = ("127.0.0.1", 5555)

    monkeypatch.setattr("uvicorn.protocols.http.h11_impl.H11Protocol.connection_made", fake_connection_made)
    protocol, transport = _protocol_for_peer(("127.0.0.1", 5555))

    protocol.connection_made(transport)

    transport.close.assert_not_called()
