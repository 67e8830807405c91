# Copyright (C) 2007 Giampaolo Rodola' <g.rodola@gmail.com>.
# Use of this source code is governed by MIT license that can be
# found in the LICENSE file.

import contextlib
import functools
import logging
import os
import shutil
import socket
import stat
import tempfile
import threading
import time
import unittest
import warnings

from pyftpdlib.authorizers import DummyAuthorizer
from pyftpdlib.handlers import FTPHandler
from pyftpdlib.servers import FTPServer

from pyftpclient import FTPClient

HERE = os.path.realpath(os.path.abspath(os.path.dirname(__file__)))
ROOT_DIR = os.path.realpath(os.path.join(HERE, ".."))

POSIX = os.name == "posix"

GITHUB_ACTIONS = "GITHUB_ACTIONS" in os.environ or "CIBUILDWHEEL" in os.environ
CI_TESTING = GITHUB_ACTIONS

# Attempt to use IP rather than hostname (test suite will run a lot faster)
try:
    HOST = socket.gethostbyname("localhost")
except OSError:
    HOST = "localhost"

USER = "user"
PASSWD = "12345"
# Use PID to disambiguate file name for parallel testing.
TESTFN_PREFIX = f"pyftpclient-tmp-{os.getpid()}-"
GLOBAL_TIMEOUT = 2

if CI_TESTING:
    GLOBAL_TIMEOUT *= 3


class PyftpclientTestCase(unittest.TestCase):
    """All test classes inherit from this one."""

    def setUp(self):
        super().setUp()
        reset_client_opts()

    def __str__(self):
        # Print a full path representation of the single unit tests
        # being run.
        fqmod = self.__class__.__module__
        if not fqmod.startswith("tests."):
            fqmod = "tests." + fqmod
        return f"{fqmod}.{self.__class__.__name__}.{self._testMethodName}"

    def get_testfn(self, suffix="", dir=None):
        fname = get_testfn(suffix=suffix, dir=dir)
        self.addCleanup(safe_rmpath, fname)
        return fname


def returning(items):
    """Return a mock side_effect that hands out `items` in order.
    A list side_effect would raise Reply values, since Reply is an
    exception; only non-Reply exceptions are raised here.
    """
    from pyftpclient.reply import Reply  # noqa: PLC0415

    it = iter(items)

    def side_effect(*args, **kwargs):
        item = next(it)
        if isinstance(item, BaseException) and not isinstance(item, Reply):
            raise item
        return item

    return side_effect


def reset_client_opts():
    # Since FTPClient configurable "options" are class attributes we
    # reset them at class level.
    FTPClient.encoding = "utf8"
    FTPClient.unicode_errors = "replace"
    FTPClient.max_line_length = 8192
    FTPClient.dial_timeout = None


def try_address(host, port=0, family=socket.AF_INET):
    """Try to bind a socket on the given host:port and return True
    if that has been possible."""
    # Note: if IPv6 fails on Linux do:
    # $ sudo sh -c 'echo 0 > /proc/sys/net/ipv6/conf/all/disable_ipv6'
    try:
        with contextlib.closing(socket.socket(family)) as sock:
            sock.bind((host, port))
    except (OSError, socket.gaierror):
        return False
    else:
        return True


SUPPORTS_IPV6 = socket.has_ipv6 and try_address("::1", family=socket.AF_INET6)


def tcp_socketpair(family=socket.AF_INET):
    """Return a pair of connected TCP sockets (client, server).
    Unlike socket.socketpair() these have a real address family and
    peer address, as a control connection does.
    """
    addr = "::1" if family == socket.AF_INET6 else "127.0.0.1"
    with contextlib.closing(socket.socket(family, socket.SOCK_STREAM)) as ls:
        ls.bind((addr, 0))
        ls.listen(5)
        c = socket.socket(family, socket.SOCK_STREAM)
        try:
            c.connect(ls.getsockname())
            caddr = c.getsockname()
            while True:
                a, addr = ls.accept()
                # check that we've got the correct client
                if addr == caddr:
                    return c, a
                a.close()
        except OSError:
            c.close()
            raise


def recv_lines(sock, count, timeout=GLOBAL_TIMEOUT):
    """Read `count` CRLF terminated lines from `sock` (the server end
    of a control connection) and return them without terminators.
    """
    sock.settimeout(timeout)
    data = b""
    while data.count(b"\r\n") < count:
        chunk = sock.recv(4096)
        if not chunk:
            break
        data += chunk
    return [x.decode("utf8") for x in data.split(b"\r\n") if x]


def get_testfn(suffix="", dir=None):
    """Return an absolute pathname of a file or dir that did not
    exist at the time this call is made. Also schedule it for safe
    deletion at interpreter exit. It's technically racy but probably
    not really due to the time variant.
    """
    if dir is None:
        dir = os.getcwd()
    while True:
        name = tempfile.mktemp(prefix=TESTFN_PREFIX, suffix=suffix, dir=dir)
        if not os.path.exists(name):  # also include dirs
            return os.path.basename(name)


def safe_rmpath(path):
    """Convenience function for removing temporary test files or dirs."""

    def retry_fun(fun):
        # On Windows it could happen that the file or directory has
        # open handles or references preventing the delete operation
        # to succeed immediately, so we retry for a while. See:
        # https://bugs.python.org/issue33240
        stop_at = time.time() + GLOBAL_TIMEOUT
        while time.time() < stop_at:
            try:
                return fun()
            except FileNotFoundError:
                pass
            except OSError as _:
                err = _
                warnings.warn(f"ignoring {err!s}", UserWarning, stacklevel=2)
            time.sleep(0.01)
        raise err

    try:
        st = os.stat(path)
        if stat.S_ISDIR(st.st_mode):
            fun = functools.partial(shutil.rmtree, path)
        else:
            fun = functools.partial(os.remove, path)
        if POSIX:
            fun()
        else:
            retry_fun(fun)
    except FileNotFoundError:
        pass


def disable_log_warning(fun):
    """Temporarily set the FTP server's logging level to ERROR."""

    @functools.wraps(fun)
    def wrapper(self, *args, **kwargs):
        logger = logging.getLogger("pyftpdlib")
        level = logger.getEffectiveLevel()
        logger.setLevel(logging.ERROR)
        try:
            return fun(self, *args, **kwargs)
        finally:
            logger.setLevel(level)

    return wrapper


# --- a real FTP server to talk to


def setup_server(handler, server_class, home, addr=None):
    addr = (HOST, 0) if addr is None else addr
    authorizer = DummyAuthorizer()
    # full perms
    authorizer.add_user(USER, PASSWD, home, perm="elradfmwMT")
    authorizer.add_anonymous(home)
    handler.authorizer = authorizer
    handler.auth_failed_timeout = 0.001
    return server_class(addr, handler)


class FtpdThreadWrapper(threading.Thread):
    """A threaded pyftpdlib FTP server used for running tests.
    It wraps the server polling loop into a thread. The instance
    returned can be start()ed and stop()ped.
    """

    handler = FTPHandler
    server_class = FTPServer
    poll_interval = 0.001 if CI_TESTING else 0.000001
    # Makes the thread stop on interpreter exit.
    daemon = True

    def __init__(self, home, addr=None):
        super().__init__(name="test-ftpd")
        handler = type("TestFTPHandler", (self.handler,), {})
        self.server = setup_server(
            handler, self.server_class, home, addr=addr
        )
        self.host, self.port = self.server.socket.getsockname()[:2]

        self.lock = threading.Lock()
        self._stop_flag = False
        self._event_stop = threading.Event()

    def run(self):
        try:
            while not self._stop_flag:
                with self.lock:
                    self.server.serve_forever(
                        timeout=self.poll_interval, blocking=False
                    )
        finally:
            self._event_stop.set()

    def stop(self):
        self._stop_flag = True  # signal the main loop to exit
        self._event_stop.wait()
        self.server.close_all()
        self.join()

