# Copyright (C) 2007 Giampaolo Rodola' <g.rodola@gmail.com>.
# Use of this source code is governed by MIT license that can be
# found in the LICENSE file.

"""
Logging support for pyftpclient, inspired from Tornado's
(http://www.tornadoweb.org/).

The library itself never configures logging. Applications either use
logging.basicConfig() or call config_logging() before dialing.
"""

import logging

from .utils import term_supports_colors

try:
    import curses
except ImportError:
    curses = None


# default logger
logger = logging.getLogger("pyftpclient")

# configurable options
LEVEL = logging.INFO
PREFIX = "[%(levelname)1.1s %(asctime)s]"
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


# taken and adapted from Tornado
class LogFormatter(logging.Formatter):
    """Log formatter used in pyftpclient.
    Key features of this formatter are:

    * Color support when logging to a terminal that supports it.
    * Timestamps on every log line.
    * Multi-line messages (e.g. FTP multi-line replies) are indented.
    """

    PREFIX = PREFIX

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._coloured = curses is not None and term_supports_colors()
        if self._coloured:
            curses.setupterm()
            fg_color = (
                curses.tigetstr("setaf") or curses.tigetstr("setf") or b""
            )
            self._colors = {
                # blues
                logging.DEBUG: str(curses.tparm(fg_color, 4), "ascii"),
                # green
                logging.INFO: str(curses.tparm(fg_color, 2), "ascii"),
                # yellow
                logging.WARNING: str(curses.tparm(fg_color, 3), "ascii"),
                # red
                logging.ERROR: str(curses.tparm(fg_color, 1), "ascii"),
            }
            self._normal = str(curses.tigetstr("sgr0"), "ascii")

    def format(self, record):
        try:
            record.message = record.getMessage()
        except Exception as err:
            record.message = f"Bad message ({err!r}): {record.__dict__!r}"

        record.asctime = self.formatTime(record, TIME_FORMAT)
        prefix = self.PREFIX % record.__dict__
        if self._coloured:
            prefix = (
                self._colors.get(record.levelno, self._normal)
                + prefix
                + self._normal
            )

        formatted = prefix + " " + record.message
        if record.exc_info:
            if not record.exc_text:
                record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            formatted = formatted.rstrip() + "\n" + record.exc_text
        return formatted.replace("\n", "\n    ")


def debug(s, inst=None):
    s = "[debug] " + s
    if inst is not None:
        s += f" ({inst!r})"
    logger.debug(s)


def config_logging(level=LEVEL, prefix=PREFIX, other_loggers=None):
    """Attach a (possibly coloured) stderr handler to the pyftpclient
    logger and to any other logger name passed in `other_loggers`.
    Calling it more than once doesn't duplicate handlers.
    """
    # Speedup logging by preventing certain internal log record info
    # from being calculated.
    logging.logThreads = False
    logging.logMultiprocessing = False
    logging.logProcesses = False

    loggers = ["pyftpclient"]
    if other_loggers is not None:
        loggers.extend(other_loggers)
    handler = logging.StreamHandler()
    formatter = LogFormatter()
    formatter.PREFIX = prefix
    handler.setFormatter(formatter)
    for name in loggers:
        lgr = logging.getLogger(name)
        for h in list(lgr.handlers):
            if isinstance(h.formatter, LogFormatter):
                lgr.removeHandler(h)
        lgr.setLevel(level)
        lgr.addHandler(handler)
