"""Connection-level origin filtering for the uvicorn HTTP protocol."""
from __future__ import annotations

import logging
from typing import Optional

from uvicorn.protocols.http.h11_impl import H11Protocol

logger = logging.getLogger(__name__)

LOOPBACK_HOSTS = frozenset({"127.0.0.1", "::1"})
# Default Docker bridge networks live in 172.16.0.0/12; matched by prefix only.
CONTAINER_NETWORK_PREFIXES = ("172.", "::ffff:172.")


def is_permitted_peer(host: Optional[str]) -> bool:
    """Return True for loopback peers and peers on the container network."""

    if not host:
        return False
    return host in LOOPBACK_HOSTS or host.startswith(CONTAINER_NETWORK_PREFIXES)


class GuardedH11Protocol(H11Protocol):
    """h11 protocol that drops connections from non-permitted peers.

    The transport is closed as soon as the connection is made, before any
    request bytes are read, and nothing is written back.
    """

    def connection_made(self, transport) -> None:  # type: ignore[override]
        super().connection_made(transport)
        host = self.client[0] if self.client else None
        if not is_permitted_peer(host):
            logger.warning("Dropping connection from non-permitted peer %s", host)
            transport.close()
