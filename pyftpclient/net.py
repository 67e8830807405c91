# Copyright (C) 2007 Giampaolo Rodola' <g.rodola@gmail.com>.
# Use of this source code is governed by MIT license that can be
# found in the LICENSE file.

import socket

from .context import call_deferred
from .exceptions import ConfigurationError
from .log import logger
from .utils import format_address
from .utils import split_host_port

__all__ = ["dial_tcp", "network_family"]


NETWORKS = {
    "tcp": socket.AF_UNSPEC,
    "tcp4": socket.AF_INET,
    "tcp6": socket.AF_INET6,
}


def network_family(network):
    """Map a network name ("tcp", "tcp4" or "tcp6") to an address
    family.
    """
    try:
        return NETWORKS[network]
    except (KeyError, TypeError):
        raise ConfigurationError(
            f"unsupported network {network!r}; only TCP connections are"
            f" supported (choose between {', '.join(map(repr, NETWORKS))})"
        ) from None


def _connect(host, port, family, timeout):
    # Same as socket.create_connection() plus the address family.
    err = None
    for res in socket.getaddrinfo(host, port, family, socket.SOCK_STREAM):
        af, socktype, proto, _, sa = res
        sock = None
        try:
            sock = socket.socket(af, socktype, proto)
            sock.settimeout(timeout)
            sock.connect(sa)
        except OSError as _:
            err = _
            if sock is not None:
                sock.close()
        else:
            sock.settimeout(None)
            return sock
    if err is not None:
        raise err
    raise OSError(f"getaddrinfo returned an empty list for {host!r}")


def dial_tcp(address, family=socket.AF_UNSPEC, ctx=None, timeout=None):
    """Connect to `address` and return a blocking socket.

    The connect timeout is `timeout` bounded by the context deadline,
    if any. A socket connected after the caller gave up is closed.
    """
    host, port = split_host_port(address)
    if ctx is not None and ctx.deadline is not None:
        remaining = ctx.remaining()
        if timeout is None or remaining < timeout:
            timeout = remaining
    logger.debug("dialing %s", format_address(host, port))
    return call_deferred(
        ctx,
        _connect,
        host,
        port,
        family,
        timeout,
        on_abandon=lambda sock: sock.close(),
        name="dial",
    )
