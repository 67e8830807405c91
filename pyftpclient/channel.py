# Copyright (C) 2007 Giampaolo Rodola' <g.rodola@gmail.com>.
# Use of this source code is governed by MIT license that can be
# found in the LICENSE file.

import threading

from .context import call_deferred
from .log import logger
from .reply import read_reply

__all__ = ["CommandChannel"]


def _loggable(command):
    if command[:5].upper() == "PASS ":
        return command[:5] + "******"
    return command


class CommandChannel:
    """The client side protocol interpreter: sends commands over the
    control connection and reads the replies.

    Exactly one command/reply exchange runs at a time. Each exchange
    holds the connection lock, so one abandoned by a canceled caller
    completes before the next starts and the reply stream never gets
    out of sync.
    """

    def __init__(self, conn):
        self.conn = conn
        self._unwanted = 0
        self._unwanted_lock = threading.Lock()

    def __repr__(self):
        return f"<{self.__class__.__name__} conn={self.conn!r}>"

    @property
    def family(self):
        return self.conn.family

    def peer_address(self):
        return self.conn.peer_address()

    def close(self):
        self.conn.close()

    def discard_reply(self):
        """Have the next exchange read and drop one reply before doing
        anything else. Used when a reply is still due but its reader
        gave up, e.g. the outcome of a canceled transfer.
        """
        with self._unwanted_lock:
            self._unwanted += 1

    # --- units of work (blocking, run as is or on a background thread)

    def _skip_unwanted(self):
        # must be called holding conn.lock
        with self._unwanted_lock:
            count, self._unwanted = self._unwanted, 0
        for _ in range(count):
            reply = read_reply(self.conn)
            logger.debug("discarded late reply %s", reply)

    def _exchange(self, command):
        with self.conn.lock:
            self._skip_unwanted()
            logger.debug("-> %s", _loggable(command))
            self.conn.write_line(command)
            return read_reply(self.conn)

    def _receive(self):
        with self.conn.lock:
            self._skip_unwanted()
            return read_reply(self.conn)

    # --- public API

    def send_command(self, command, ctx=None, on_abandon=None):
        """Send `command` and return the reply, whatever its code.

        If the context gives up first `on_abandon(reply)` is called
        with the late reply, still holding the connection lock.
        """
        return call_deferred(
            ctx,
            self._exchange,
            command,
            on_abandon=on_abandon,
            name=f"cmd-{command.partition(' ')[0]}",
            hold=self.conn.lock,
        )

    def read_reply(self, ctx=None):
        """Read a reply nobody asked for with a command, i.e. the
        welcome message and the final reply of a data transfer.
        """
        return call_deferred(ctx, self._receive, name="reply")
