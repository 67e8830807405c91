# Copyright (C) 2007 Giampaolo Rodola' <g.rodola@gmail.com>.
# Use of this source code is governed by MIT license that can be
# found in the LICENSE file.

import socket

from .context import check
from .log import debug
from .log import logger
from .passive import open_passive

__all__ = ["DataStream", "transfer"]


TYPE_ASCII = "A"
TYPE_IMAGE = "I"


class DataStream:
    """A passive data connection, as returned by FTPClient.text() and
    FTPClient.binary().

    Reads and writes go straight to the data socket, after checking
    the context hasn't been canceled. Closing the stream also reads
    the reply the server sends on the control connection once the
    transfer is over: it *must* be closed, even if no data was read
    or written, or the next command will get the wrong reply.
    """

    chunk_size = 8192

    def __init__(self, sock, channel, ctx=None):
        self.sock = sock
        self.channel = channel
        self.ctx = ctx
        self.closed = False
        self.reply = None  # the final reply, set by close()

    def __repr__(self):
        status = "closed" if self.closed else "open"
        return f"<{self.__class__.__name__} {status} ctx={self.ctx!r}>"

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def __iter__(self):
        while True:
            chunk = self.read(self.chunk_size)
            if not chunk:
                break
            yield chunk

    def _before_io(self):
        if self.closed:
            raise ValueError("I/O operation on closed data stream")
        check(self.ctx)
        if self.ctx is not None and self.ctx.deadline is not None:
            # 0 would make the socket non-blocking
            self.sock.settimeout(max(self.ctx.remaining(), 0.001))

    def _call(self, fun, *args):
        self._before_io()
        try:
            return fun(*args)
        except socket.timeout:
            if self.ctx is not None and self.ctx.done():
                raise self.ctx.err() from None
            raise

    def read(self, size=-1):
        """Read up to `size` bytes; with a negative size read until
        the server closes the data connection.
        """
        if size is None or size < 0:
            return b"".join(self)
        return self._call(self.sock.recv, size)

    def readinto(self, buf):
        return self._call(self.sock.recv_into, buf)

    def write(self, data):
        self._call(self.sock.sendall, data)
        return len(data)

    def close(self):
        """Close the data connection and wait for the transfer outcome
        on the control connection. A reply other than 2xx is raised.
        """
        if self.closed:
            return
        self.closed = True
        self.sock.close()
        if self.ctx is not None and self.ctx.done():
            # the outcome is still coming: let the next command skip it
            self.channel.discard_reply()
            raise self.ctx.err()
        reply = self.channel.read_reply(self.ctx)
        self.reply = reply
        if not reply.positive_complete:
            raise reply
        return reply


def _expect_final_reply(channel):
    def on_abandon(reply):
        # a 1xx reply is followed by the transfer outcome
        if reply.positive_preliminary:
            channel.discard_reply()

    return on_abandon


def transfer(channel, command, data_type, ctx=None, timeout=None):
    """Set the representation type, open a passive data connection and
    send `command`. Return a (reply, DataStream) tuple.
    """
    reply = channel.send_command(f"TYPE {data_type}", ctx)
    if not reply.positive_complete:
        raise reply

    sock = open_passive(channel, ctx, timeout=timeout)
    try:
        reply = channel.send_command(
            command, ctx, on_abandon=_expect_final_reply(channel)
        )
        if not reply.positive:
            raise reply
    except BaseException as err:
        debug(f"closing data connection ({err!r})", channel)
        sock.close()
        raise
    logger.debug("data connection open for %r", command)
    return reply, DataStream(sock, channel, ctx)
