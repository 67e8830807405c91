# Copyright (C) 2007 Giampaolo Rodola' <g.rodola@gmail.com>.
# Use of this source code is governed by MIT license that can be
# found in the LICENSE file.

"""
Passive mode negotiation: ask the server to listen on a port for the
upcoming data connection (RFC-959 PASV, RFC-2428 EPSV).
"""

import re
import socket

from .exceptions import AddressParseError
from .log import logger
from .net import dial_tcp
from .reply import CODE_EXTENDED_PASSIVE
from .reply import CODE_PASSIVE

__all__ = [
    "obtain_passive_address",
    "open_passive",
    "parse_epsv_reply",
    "parse_pasv_reply",
]


# The format of 227 response in not standardized: the six numbers may
# be wrapped in parentheses or not, or preceded by arbitrary text.
_re_pasv = re.compile(r"(\d+),(\d+),(\d+),(\d+),(\d+),(\d+)", re.ASCII)

# "229 Entering Extended Passive Mode (|||port|)"
EPSV_START = "(|||"
EPSV_END = "|)"


def parse_pasv_reply(msg):
    """Return the (host, port) tuple contained in a 227 reply text."""
    m = _re_pasv.search(msg)
    if m is None:
        raise AddressParseError("PASV reply provided no port")
    numbers = [int(x) for x in m.groups()]
    if any(n > 255 for n in numbers):
        raise AddressParseError("PASV reply provided no port")
    host = ".".join(map(str, numbers[:4]))
    port = (numbers[4] << 8) + numbers[5]
    return host, port


def parse_epsv_reply(msg):
    """Return the port contained in a 229 reply text.

    The last occurrence of the delimiters is used, since the text
    preceding them is free-form and may echo them.
    """
    start = msg.rfind(EPSV_START)
    if start == -1:
        raise AddressParseError("EPSV reply provided no port")
    start += len(EPSV_START)
    end = msg.rfind(EPSV_END)
    if end == -1 or end <= start:
        raise AddressParseError("EPSV reply provided no port")
    port = msg[start:end]
    if not (port.isascii() and port.isdigit()) or int(port) > 65535:
        raise AddressParseError("EPSV reply provided no port")
    return int(port)


def _obtain_passive_address4(channel, ctx):
    reply = channel.send_command("PASV", ctx)
    if reply.code != CODE_PASSIVE:
        raise reply
    return parse_pasv_reply(reply.message)


def _obtain_passive_address6(channel, ctx):
    reply = channel.send_command("EPSV", ctx)
    if reply.code != CODE_EXTENDED_PASSIVE:
        raise reply
    port = parse_epsv_reply(reply.message)
    # EPSV omits the host: it's the one we're already talking to.
    host = channel.peer_address()[0]
    return host, port


def obtain_passive_address(channel, ctx=None):
    """Return the (host, port) to dial for a new passive data
    connection: EPSV on IPv6 control connections, PASV otherwise.
    """
    if channel.family == socket.AF_INET:
        return _obtain_passive_address4(channel, ctx)
    return _obtain_passive_address6(channel, ctx)


def open_passive(channel, ctx=None, timeout=None):
    """Negotiate a passive address and connect to it."""
    host, port = obtain_passive_address(channel, ctx)
    logger.debug("opening passive data connection to %s:%s", host, port)
    return dial_tcp((host, port), family=channel.family, ctx=ctx,
                    timeout=timeout)
