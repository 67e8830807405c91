# Copyright (C) 2007 Giampaolo Rodola' <g.rodola@gmail.com>.
# Use of this source code is governed by MIT license that can be
# found in the LICENSE file.

import socket
import threading

from .exceptions import ProtocolError

__all__ = ["TextConn"]

# RFC-959 doesn't limit line length; this only protects us from
# a misbehaving server sending an endless line. It counts the line
# content, terminator excluded.
MAX_LINE = 8192


class TextConn:
    """A CRLF line oriented wrapper around the control socket.

    The `lock` attribute is held by whoever is performing a
    command/reply exchange, so that a unit of work which outlives
    its caller (see context.call_deferred) still completes before
    the next one starts.
    """

    def __init__(self, sock, encoding="utf8", errors="replace",
                 max_line=MAX_LINE):
        self.sock = sock
        self.max_line = max_line
        self.encoding = encoding
        self.errors = errors
        self.lock = threading.RLock()
        self._file = sock.makefile("rb")
        self._closed = False

    def __repr__(self):
        status = "closed" if self._closed else "open"
        return f"<{self.__class__.__name__} {status} fd={self.fileno()}>"

    @property
    def family(self):
        return self.sock.family

    def fileno(self):
        try:
            return self.sock.fileno()
        except OSError:
            return -1

    def peer_address(self):
        return self.sock.getpeername()

    def read_line(self):
        """Read one line and return it without the line terminator.
        A final line lacking a terminator is returned as is; EOFError
        is raised when no bytes at all are left.
        """
        # room for the content plus CRLF plus one byte to tell a line
        # that is too long
        line = self._file.readline(self.max_line + 3)
        if not line:
            raise EOFError("connection closed by remote end")
        if line.endswith(b"\n"):
            line = line[:-1]
            if line.endswith(b"\r"):
                line = line[:-1]
        if len(line) > self.max_line:
            raise ProtocolError(
                f"line too long (> {self.max_line} bytes)"
            )
        return line.decode(self.encoding, self.errors)

    def write_line(self, line):
        if "\r" in line or "\n" in line:
            raise ValueError("an illegal newline character should not be "
                             "contained")
        self.sock.sendall((line + "\r\n").encode(self.encoding, self.errors))

    def close(self):
        if self._closed:
            return
        self._closed = True
        # Shut down first: it wakes up a thread blocked in read_line(),
        # which holds the buffered reader lock close() needs.
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        try:
            self._file.close()
        finally:
            self.sock.close()
