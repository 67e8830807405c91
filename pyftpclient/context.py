# Copyright (C) 2007 Giampaolo Rodola' <g.rodola@gmail.com>.
# Use of this source code is governed by MIT license that can be
# found in the LICENSE file.

"""
Cancellation and deadlines layered on top of blocking socket I/O.

A Context carries a one-shot "done" signal: it fires either because
somebody called cancel() or because its deadline passed. Deadlines
are evaluated lazily against time.monotonic(), so no timer threads
exist.

Two ways of honouring a context are provided:

    call_deferred(ctx, fun, *args)
        run fun() on a background thread and wait for either its
        result or the context, whichever comes first. If the context
        wins the thread is *not* interrupted: it keeps running so that
        the control connection stays framed.

    check(ctx)
        raise the context error if the signal already fired. Cheap,
        used before every read/write on a data connection.
"""

import concurrent.futures
import contextlib
import threading
import time
import weakref

from .exceptions import Canceled
from .exceptions import DeadlineExceeded
from .log import debug
from .log import logger

__all__ = ["Context", "call_deferred", "check"]


class Context:
    """A cancellation / deadline signal.

    Use one of the class constructors rather than instantiating it
    directly:

    >>> ctx = Context.with_timeout(5)
    >>> client = dial(("ftp.example.com", 21), ctx=ctx)
    """

    def __init__(self, parent=None, deadline=None, cancellable=True):
        if parent is not None and parent.deadline is not None:
            if deadline is None or parent.deadline < deadline:
                deadline = parent.deadline
        self._deadline = deadline
        self._cancellable = cancellable
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._err = None
        self._callbacks = []
        self._parent = parent
        self._parent_callback = None
        if parent is not None and parent.cancellable:
            # The parent only holds a weak reference: a child dropped
            # before it is done unregisters itself when collected.
            self._parent_callback = _propagate_done(weakref.ref(self), parent)
            weakref.finalize(
                self, parent.remove_done_callback, self._parent_callback
            )
            parent.add_done_callback(self._parent_callback)

    def __repr__(self):
        status = "done" if self.done() else "active"
        if not self._cancellable:
            return f"<{self.__class__.__name__} background>"
        if self._deadline is not None:
            return (
                f"<{self.__class__.__name__} {status}"
                f" remaining={self.remaining():.3f}s>"
            )
        return f"<{self.__class__.__name__} {status}>"

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.cancel()

    # --- constructors

    @classmethod
    def background(cls):
        """A context which is never done."""
        return cls(cancellable=False)

    @classmethod
    def with_cancel(cls, parent=None):
        return cls(parent=parent)

    @classmethod
    def with_deadline(cls, when, parent=None):
        """`when` is a time.monotonic() timestamp."""
        return cls(parent=parent, deadline=when)

    @classmethod
    def with_timeout(cls, timeout, parent=None):
        return cls.with_deadline(time.monotonic() + timeout, parent=parent)

    # --- properties

    @property
    def cancellable(self):
        """False for a background context. Callers use it to skip the
        cancellation machinery altogether.
        """
        return self._cancellable

    @property
    def deadline(self):
        return self._deadline

    # --- signal

    def cancel(self):
        self._finish(Canceled())

    def _finish(self, err):
        if not self._cancellable:
            return
        with self._lock:
            if self._err is not None:
                return
            self._err = err
            callbacks = self._callbacks[:]
            self._callbacks.clear()
        self._event.set()
        if self._parent_callback is not None:
            self._parent.remove_done_callback(self._parent_callback)
        for fun in callbacks:
            try:
                fun()
            except Exception:
                logger.exception("unhandled error in context callback")

    def err(self):
        """Return Canceled or DeadlineExceeded if the context is done,
        else None.
        """
        if self._err is None and self._deadline is not None:
            if time.monotonic() >= self._deadline:
                self._finish(DeadlineExceeded())
        return self._err

    def done(self):
        return self.err() is not None

    def raise_if_done(self):
        err = self.err()
        if err is not None:
            raise err

    def remaining(self):
        """Seconds left before the deadline (never negative), or None
        if the context has no deadline.
        """
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def wait(self, timeout=None):
        """Block until the context is done or `timeout` seconds passed.
        Return True if the context is done.
        """
        if not self._cancellable:
            if timeout is not None:
                time.sleep(timeout)
            return False
        stop_at = None if timeout is None else time.monotonic() + timeout
        while not self.done():
            wait_for = self.remaining()
            if stop_at is not None:
                left = stop_at - time.monotonic()
                if left <= 0:
                    return False
                if wait_for is None or left < wait_for:
                    wait_for = left
            self._event.wait(wait_for)
        return True

    def add_done_callback(self, fun):
        """Call `fun()` with no arguments once the context is canceled.
        Expired deadlines fire callbacks the first time err() notices.
        If the context is already done `fun` is called immediately.
        """
        if not self._cancellable:
            return
        with self._lock:
            if self._err is None:
                self._callbacks.append(fun)
                return
        fun()

    def remove_done_callback(self, fun):
        with self._lock:
            try:
                self._callbacks.remove(fun)
            except ValueError:
                pass


def _propagate_done(ref, parent):
    def on_parent_done():
        child = ref()
        if child is not None:
            child._finish(parent.err())

    return on_parent_done


def check(ctx):
    """Poll-before-operate: raise the context error if `ctx` is
    already done.
    """
    if ctx is not None and ctx.cancellable:
        ctx.raise_if_done()


def call_deferred(ctx, fun, *args, on_abandon=None, name=None, hold=None):
    """Call `fun(*args)` honouring `ctx`.

    With a background (or None) context this is a plain function call.
    Otherwise `fun` runs on a daemon thread and the caller waits for
    its result or for the context, whichever comes first. When the
    context wins its error is raised, and the thread carries on; once
    it completes `on_abandon(result)` is called with the value nobody
    is going to use (errors of abandoned calls are only logged).

    If `hold` (a lock) is given the thread holds it across both the
    call and on_abandon().
    """
    if ctx is None or not ctx.cancellable:
        return fun(*args)
    ctx.raise_if_done()

    future = concurrent.futures.Future()
    lock = threading.Lock()
    abandoned = False

    def run():
        nonlocal abandoned
        future.set_running_or_notify_cancel()
        with hold if hold is not None else contextlib.nullcontext():
            try:
                ret = fun(*args)
            except BaseException as err:
                future.set_exception(err)
                with lock:
                    if abandoned:
                        debug(f"abandoned call {name!r} failed: {err!r}")
            else:
                future.set_result(ret)
                with lock:
                    if abandoned and on_abandon is not None:
                        on_abandon(ret)

    wakeup = threading.Event()
    future.add_done_callback(lambda f: wakeup.set())
    ctx.add_done_callback(wakeup.set)
    if name is None:
        name = f"deferred-{getattr(fun, '__name__', 'call')}"
    thread = threading.Thread(target=run, name=name, daemon=True)
    thread.start()
    try:
        while True:
            if future.done():
                return future.result()
            err = ctx.err()
            if err is not None:
                with lock:
                    if not future.done():
                        abandoned = True
                        raise err
                # the call completed while we were deciding
                return future.result()
            wakeup.wait(ctx.remaining())
    finally:
        ctx.remove_done_callback(wakeup.set)
