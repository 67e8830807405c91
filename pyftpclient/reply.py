# Copyright (C) 2007 Giampaolo Rodola' <g.rodola@gmail.com>.
# Use of this source code is governed by MIT license that can be
# found in the LICENSE file.

"""
FTP replies (RFC-959, section 4.2).

A reply is a three digit code followed by some text. The first digit
tells how the command went:

    1yz   positive preliminary reply
    2yz   positive completion reply
    3yz   positive intermediate reply
    4yz   transient negative completion reply
    5yz   permanent negative completion reply

Reply is also an exception: when a reply is not what the caller
expected it is raised as is, and str() renders it as "<code> <text>".
"""

from .exceptions import ProtocolError
from .log import logger

__all__ = ["Reply", "read_reply"]


CODE_RESTART_MARKER = 110
CODE_SERVICE_READY_IN = 120
CODE_ALREADY_OPEN = 125
CODE_OK_OPENING = 150
CODE_OK = 200
CODE_SERVICE_READY = 220
CODE_CLOSING = 221
CODE_TRANSFER_COMPLETE = 226
CODE_PASSIVE = 227
CODE_EXTENDED_PASSIVE = 229
CODE_LOGGED_IN = 230
CODE_FILE_ACTION_OK = 250
CODE_NEED_PASSWORD = 331
CODE_NEED_ACCOUNT = 332
CODE_PENDING_FURTHER_INFO = 350
CODE_NOT_AVAILABLE = 421
CODE_CANT_OPEN_DATA = 425
CODE_TRANSFER_ABORTED = 426
CODE_SYNTAX_ERROR = 500
CODE_NOT_LOGGED_IN = 530
CODE_FILE_UNAVAILABLE = 550


class Reply(Exception):
    """A reply received on the control connection."""

    def __init__(self, code, message=""):
        super().__init__(code, message)
        self._code = int(code)
        self._message = message

    @property
    def code(self):
        return self._code

    @property
    def message(self):
        return self._message

    def __str__(self):
        return f"{self._code} {self._message}"

    def __repr__(self):
        return f"{self.__class__.__name__}({self._code!r}, {self._message!r})"

    def __eq__(self, other):
        if not isinstance(other, Reply):
            return NotImplemented
        return (self._code, self._message) == (other.code, other.message)

    def __hash__(self):
        return hash((self._code, self._message))

    def __reduce__(self):
        return (self.__class__, (self._code, self._message))

    # --- classification

    @property
    def positive_preliminary(self):
        """1yz: the action is being started, expect another reply."""
        return 100 <= self._code < 200

    @property
    def positive_complete(self):
        """2yz: the requested action has been successfully completed."""
        return 200 <= self._code < 300

    @property
    def positive_intermediate(self):
        """3yz: the command has been accepted, but more information
        is needed (e.g. a password after USER).
        """
        return 300 <= self._code < 400

    @property
    def positive(self):
        """Whether the command didn't fail outright (1yz, 2yz or 3yz)."""
        return 100 <= self._code < 400

    @property
    def transient_negative(self):
        return 400 <= self._code < 500

    @property
    def permanent_negative(self):
        return 500 <= self._code < 600


def read_reply(conn):
    """Read one, possibly multi-line, reply from `conn` (a TextConn).

    Raise ProtocolError if the first line can't be framed. If the
    connection fails while reading a multi-line reply the error is
    re-raised with the lines read so far available as its `reply`
    attribute.
    """
    line = conn.read_line()
    if len(line) < 4:
        raise ProtocolError(f"short response line {line!r}")
    if not (line[:3].isascii() and line[:3].isdigit()):
        raise ProtocolError(f"invalid response code in {line!r}")
    code = int(line[:3])

    sep = line[3]
    if sep == " ":
        reply = Reply(code, line[4:])
    elif sep == "-":
        lines = [line[4:]]
        end_prefix = line[:3] + " "
        try:
            while True:
                line = conn.read_line()
                if line.startswith(end_prefix):
                    lines.append(line[len(end_prefix):])
                    break
                lines.append(line)
        except (OSError, EOFError) as err:
            err.reply = Reply(code, "\n".join(lines))
            raise
        reply = Reply(code, "\n".join(lines))
    else:
        raise ProtocolError(f"expected space after response code {line!r}")

    logger.debug("<- %s", reply)
    return reply
