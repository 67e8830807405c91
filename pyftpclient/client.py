# Copyright (C) 2007 Giampaolo Rodola' <g.rodola@gmail.com>.
# Use of this source code is governed by MIT license that can be
# found in the LICENSE file.

from .channel import CommandChannel
from .exceptions import ContextError
from .log import debug
from .log import logger
from .net import dial_tcp
from .net import network_family
from .reply import CODE_NEED_PASSWORD
from .textproto import MAX_LINE
from .textproto import TextConn
from .transfer import TYPE_ASCII
from .transfer import TYPE_IMAGE
from .transfer import transfer
from .utils import format_address

__all__ = ["FTPClient", "dial"]


class FTPClient:
    """A minimal FTP client as defined in RFC-959, passive mode only.

    A single control connection can't handle simultaneous commands
    or transfers: an instance must not be used by more than one
    thread at a time.

    Every blocking method accepts an optional `ctx` (a
    pyftpclient.context.Context) used to cancel it or to give it a
    deadline.

    Configurable class attributes:

     - (str) encoding: the encoding of the control connection.
       Defaults to "utf8".

     - (str) unicode_errors: the error handler passed to
       encode()/decode() on the control connection. Defaults to
       "replace".

     - (int) max_line_length: the longest reply line accepted on the
       control connection, CRLF excluded. Longer lines raise
       ProtocolError. Defaults to 8192.

     - (float) dial_timeout: the timeout for establishing connections
       when the context carries no deadline. Defaults to None (the
       OS default).
    """

    encoding = "utf8"
    unicode_errors = "replace"
    max_line_length = MAX_LINE
    dial_timeout = None

    def __init__(self, sock, ctx=None):
        """Wrap an already connected control socket and read the
        server welcome message (stored as the `welcome` attribute).
        """
        self.conn = TextConn(
            sock,
            encoding=self.encoding,
            errors=self.unicode_errors,
            max_line=self.max_line_length,
        )
        self.channel = CommandChannel(self.conn)
        try:
            self.welcome = self.channel.read_reply(ctx)
        except BaseException:
            self.conn.close()
            raise
        logger.info("connected: %s", self.welcome)

    def __repr__(self):
        try:
            peer = format_address(*self.conn.peer_address()[:2])
        except OSError:
            peer = "?"
        return f"<{self.__class__.__name__} peer={peer} fd={self.fileno()}>"

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    @classmethod
    def dial(cls, address, network="tcp", ctx=None):
        """Connect to an FTP server at `address`, either a (host, port)
        tuple or a "host:port" string.
        `network` is one of "tcp", "tcp4" or "tcp6".
        """
        family = network_family(network)
        sock = dial_tcp(address, family=family, ctx=ctx,
                        timeout=cls.dial_timeout)
        return cls(sock, ctx=ctx)

    def fileno(self):
        return self.conn.fileno()

    def login(self, user, password, ctx=None):
        """Send credentials; raise the final reply unless it's 2xx."""
        reply = self.channel.send_command(f"USER {user}", ctx)
        if reply.code == CODE_NEED_PASSWORD:
            reply = self.channel.send_command(f"PASS {password}", ctx)
        if not reply.positive_complete:
            raise reply
        logger.info("logged in as %r", user)

    def do(self, command, ctx=None):
        """Send a command over the control connection and return the
        reply. Failures are returned too, not raised.
        """
        return self.channel.send_command(command, ctx)

    def text(self, command, ctx=None):
        """Send a command and open a passive data connection in ASCII
        mode. Return a (reply, DataStream) tuple.
        """
        return transfer(self.channel, command, TYPE_ASCII, ctx,
                        timeout=self.dial_timeout)

    def binary(self, command, ctx=None):
        """Send a command and open a passive data connection in image
        (binary) mode. Return a (reply, DataStream) tuple.
        """
        return transfer(self.channel, command, TYPE_IMAGE, ctx,
                        timeout=self.dial_timeout)

    def quit(self, ctx=None):
        """Send QUIT and close the connection."""
        try:
            self.channel.send_command("QUIT", ctx)
        except ContextError as err:
            debug(f"QUIT interrupted ({err!r}); closing anyway", self)
        self.close()

    def close(self):
        self.conn.close()


def dial(address, network="tcp", ctx=None):
    """Shortcut for FTPClient.dial()."""
    return FTPClient.dial(address, network=network, ctx=ctx)
