# Copyright (C) 2007 Giampaolo Rodola' <g.rodola@gmail.com>.
# Use of this source code is governed by MIT license that can be
# found in the LICENSE file.

"""
pyftpclient: a minimal RFC-959 FTP client.

A hierarchy of classes outlined below implement the client:

    [pyftpclient.client.FTPClient]
      owns the control connection and exposes login(), do(), text(),
      binary() and quit().

    [pyftpclient.channel.CommandChannel]
      the client protocol interpreter: sends one command at a time
      and reads the matching reply.

    [pyftpclient.reply.Reply]
      a three digit code plus text. Also an exception, raised when a
      reply is not what the caller expected.

    [pyftpclient.transfer.DataStream]
      a passive data connection (PASV or EPSV). Closing it reads the
      transfer outcome on the control connection.

    [pyftpclient.context.Context]
      cancellation and deadlines for all blocking calls.

Usage example:

>>> from pyftpclient import Context, dial
>>>
>>> ctx = Context.with_timeout(30)
>>> with dial(("ftp.example.com", 21), ctx=ctx) as client:
...     client.login("anonymous", "guest", ctx=ctx)
...     reply, stream = client.text("LIST", ctx=ctx)
...     with stream:
...         listing = stream.read()
...     client.quit(ctx=ctx)
"""

from .client import FTPClient
from .client import dial
from .context import Context
from .exceptions import AddressParseError
from .exceptions import Canceled
from .exceptions import ConfigurationError
from .exceptions import ContextError
from .exceptions import DeadlineExceeded
from .exceptions import ProtocolError
from .reply import Reply
from .transfer import DataStream

__ver__ = "1.0.0"
__author__ = "pyftpclient contributors"

__all__ = [
    "AddressParseError",
    "Canceled",
    "ConfigurationError",
    "Context",
    "ContextError",
    "DataStream",
    "DeadlineExceeded",
    "FTPClient",
    "ProtocolError",
    "Reply",
    "dial",
]
